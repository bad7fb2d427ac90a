import pytest
from typing import Any

@pytest.fixture(autouse=True)
def _setup_doctest_namespace(doctest_namespace: Any)->None:
	# this is for pytest doctest only
	import texpp
	from texpp.options import Mode, Options
	from texpp.tokens import NodeList, SourceLocation, TokenType

	doctest_namespace["texpp"]=texpp
	doctest_namespace["Mode"]=Mode
	doctest_namespace["Options"]=Options
	doctest_namespace["NodeList"]=NodeList
	doctest_namespace["SourceLocation"]=SourceLocation
	doctest_namespace["TokenType"]=TokenType
	doctest_namespace["tokenize"]=texpp.tokenize
