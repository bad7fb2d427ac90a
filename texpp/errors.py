"""
Exception classes.

Every error is fatal for the current run. Output that was already written is not rolled back.
"""

from __future__ import annotations
from typing import Optional

from .tokens import SourceLocation


class TeXppError(RuntimeError):
	"""
	Base class of the errors raised while processing a document.

	>>> str(TeXppError("oops"))
	'oops'
	>>> str(ParseError("unbalanced '}'", SourceLocation("a.tex", 3, 7)))
	"a.tex:3:7: unbalanced '}'"
	"""
	def __init__(self, message: str, location: Optional[SourceLocation]=None)->None:
		super().__init__(message)
		self.message=message
		self.location=location

	def __str__(self)->str:
		if self.location is None: return self.message
		return f"{self.location}: {self.message}"


class LexError(TeXppError):
	"""
	Malformed input at the character level: dangling ``\\``, bad ``#`` marker,
	unterminated ``\\Replace*`` operand.
	"""


class ParseError(TeXppError):
	"""
	A group or scan reached the end of input, or a token of the wrong type was found.
	"""


class DefinitionError(ParseError):
	"""
	Malformed parameter text in ``\\Define``.
	"""


class ExpansionError(TeXppError):
	"""
	Argument capture or parameter substitution failed.
	"""


class IncludeError(TeXppError):
	"""
	The file named by ``\\Include`` cannot be loaded.
	"""


class SerializationError(TeXppError):
	"""
	A node cannot be turned into text.

	Raised for an unexpanded macro at final emission, which is an internal error rather than a user error.
	"""
