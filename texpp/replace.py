r"""
Literal substitution rules.

Rules are applied in the order they were declared; each rule replaces all non-overlapping
occurrences left to right, and a later rule sees the result of the earlier ones::

	>>> rules=RawReplacementRules()
	>>> rules.add("cat", "dog")
	>>> rules.add("dog", "wolf")
	>>> rules.apply("a cat and a dog")
	'a wolf and a wolf'
"""

from __future__ import annotations
from typing import List, Tuple

from .macros import MacroTable
from .options import Options
from .tokens import NodeList, TokenType
from .util import debug_possibly_shorten, debug_print


class RuleSet:
	"""
	Ordered list of resolved ``(pattern, replacement)`` string pairs.
	"""

	def __init__(self, options: Options=Options())->None:
		self.options=options
		self.processed: List[Tuple[str, str]]=[]

	def __len__(self)->int:
		return len(self.processed)

	def apply(self, text: str)->str:
		for pattern, replacement in self.processed:
			if not pattern or pattern not in text: continue
			new_text=text.replace(pattern, replacement)
			if self.options.debug>=3:
				debug_print(self.options, 3, debug_possibly_shorten(f"[replace] {pattern!r} -> {replacement!r} in {text!r}"))
			text=new_text
		return text


class ReplacementRules(RuleSet):
	r"""
	Rules declared with ``\Replace{text}{replacement}``.

	Both operands are kept as node lists and only flattened with :meth:`~texpp.macros.MacroTable.as_text`
	by :meth:`resolve`, so they may reference macros defined later in the document.
	The resolved rules are applied to the payload of each text token.
	"""

	def __init__(self, options: Options=Options())->None:
		super().__init__(options)
		self.rules: List[Tuple[NodeList, NodeList]]=[]
		self._resolved=False

	def add(self, pattern: NodeList, replacement: NodeList)->None:
		assert not self._resolved, "cannot add rules after resolve()"
		self.rules.append((pattern, replacement))

	def resolve(self, table: MacroTable)->None:
		"""
		Flatten the rules. Only the first call has an effect.
		"""
		if self._resolved: return
		self.processed=[(table.as_text(pattern), table.as_text(replacement)) for pattern, replacement in self.rules]
		self._resolved=True

	def apply_to_nodes(self, nodes: NodeList)->NodeList:
		assert self._resolved, "call resolve() first"
		return NodeList(
				node.with_payload(self.apply(node.payload)) if node.type is TokenType.text else node
				for node in nodes
				)


class RawReplacementRules(RuleSet):
	r"""
	Rules declared with ``\Replace*{text}{replacement}``, read verbatim from the source.
	They are applied once, to the fully rendered output.
	"""

	def add(self, pattern: str, replacement: str)->None:
		self.processed.append((pattern, replacement))
