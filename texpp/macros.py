r"""
Macro storage and expansion.

A macro is stored as a list of delimiters, one per declared parameter, and a body.
Expanding a macro captures its arguments from a :class:`~texpp.lexer.Tokenizer`, substitutes them
into the body, and pushes the result back into the tokenizer, so the next reads see the expansion
as if it had been lexed from the source::

	>>> table=MacroTable()
	>>> table.define(r"\Greet", [NodeList([TokenType.text(",")])], tokenize("Hello, #1!"))
	>>> stream=Tokenizer(r"\Greet World, bye")
	>>> invocation=stream.next()
	>>> Expander(table).expand(invocation, stream)
	>>> NodeList(stream).render()
	'Hello, World! bye'

Expansion is iterative: nested and recursive invocations are handled by later reads, never by
recursion in Python.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Tuple

from .errors import ExpansionError, SerializationError
from .lexer import TokenStream, Tokenizer, tokenize
from .options import Options
from .tokens import NodeList, Token, TokenType
from .util import debug_possibly_shorten, debug_print


@dataclass
class Macro:
	"""
	:param delimiters: one entry per declared parameter. An empty entry means the
		argument is undelimited (a single token or a braced group).
	"""
	name: str
	delimiters: List[NodeList]=field(default_factory=list)
	body: NodeList=field(default_factory=NodeList)


class MacroTable:
	r"""
	Mapping from command sequence name to :class:`Macro`.

	>>> table=MacroTable()
	>>> table.define(r"\Foo", [], tokenize("bar"))
	>>> r"\Foo" in table, len(table)
	(True, 1)
	>>> table.undef(r"\DoesNotExist")
	>>> table.undef(r"\Foo")
	>>> r"\Foo" in table
	False
	"""

	def __init__(self)->None:
		self._macros: Dict[str, Macro]={}

	def define(self, name: str, delimiters: Iterable[NodeList], body: NodeList)->None:
		"""
		Store the macro, replacing any previous definition of *name*.
		"""
		self._macros[name]=Macro(name, list(delimiters), NodeList(body))

	def undef(self, name: str)->None:
		"""
		Remove the macro. Removing a name that is not defined does nothing.
		"""
		self._macros.pop(name, None)

	def __contains__(self, name: object)->bool:
		return name in self._macros

	def __getitem__(self, name: str)->Macro:
		return self._macros[name]

	def __len__(self)->int:
		return len(self._macros)

	def __iter__(self)->Iterator[str]:
		return iter(self._macros)

	def classify(self, token: Token)->Token:
		r"""
		Mark a command sequence that names a defined macro.

		>>> table=MacroTable()
		>>> table.define(r"\Foo", [], tokenize("bar"))
		>>> table.classify(TokenType.command_sequence(r"\Foo")).type
		<TokenType.macro: 5>
		>>> table.classify(TokenType.command_sequence(r"\Bar")).type
		<TokenType.command_sequence: 4>
		"""
		if token.type is TokenType.command_sequence and token.payload in self._macros:
			return Token(TokenType.macro, token.payload, token.location)
		return token

	def as_text(self, nodes: Iterable[Token], _active: Tuple[str, ...]=())->str:
		r"""
		Flatten *nodes* to literal text, inlining the body of every macro referenced.

		A command sequence that is not defined is kept literally, as a forward reference::

			>>> table=MacroTable()
			>>> table.define(r"\Animal", [], tokenize("cat"))
			>>> table.as_text(tokenize(r"a \Animal{} and \Later"))
			'a cat{} and \\Later'

		Comments are dropped. Macro parameters cannot be flattened::

			>>> table.as_text(tokenize("#1"))
			Traceback (most recent call last):
				...
			texpp.errors.SerializationError: <input>:1:1: Serialisation of MacroArg is not implemented
		"""
		parts: List[str]=[]
		for node in nodes:
			t=node.type
			if t in (TokenType.text, TokenType.whitespace, TokenType.group_begin, TokenType.group_end):
				parts.append(node.payload)
			elif t in (TokenType.command_sequence, TokenType.macro):
				macro=self._macros.get(node.payload)
				if macro is None:
					parts.append(node.payload)
				elif macro.name in _active:
					raise ExpansionError(f"Macro {macro.name} refers to itself", node.location)
				else:
					parts.append(self.as_text(macro.body, _active+(macro.name,)))
			elif t is TokenType.line_comment:
				continue
			else:
				raise SerializationError(f"Serialisation of {t.dump_name} is not implemented", node.location)
		return "".join(parts)


class Expander:
	"""
	Captures arguments and substitutes them into macro bodies.

	:param options: only :attr:`~texpp.options.Options.debug` and
		:attr:`~texpp.options.Options.max_expansions` are used.
	"""

	def __init__(self, table: MacroTable, options: Options=Options())->None:
		self.table=table
		self.options=options
		self.expansion_count=0

	def expand(self, invocation: Token, stream: TokenStream)->None:
		"""
		Replace *invocation* (already read from *stream*) by its expansion.

		*stream* may be a single :class:`~texpp.lexer.Tokenizer`, or the include stack of an
		:class:`~texpp.assembler.Assembler`, in which case the arguments may continue past the end of
		an included file.

		The substituted body is pushed in front of *stream*.
		"""
		macro=self.table[invocation.payload]
		self.expansion_count+=1
		limit=self.options.max_expansions
		if limit is not None and self.expansion_count>limit:
			raise ExpansionError(f"Expansion limit of {limit} exceeded while expanding {macro.name}", invocation.location)
		arguments=self.capture_arguments(macro, invocation, stream)
		body=self.substitute(macro, arguments)
		if self.options.debug>=5:
			debug_print(self.options, 5, debug_possibly_shorten(
				f"[expand] {macro.name}" + "".join(f" #{i+1}={a.render()!r}" for i, a in enumerate(arguments)) + f" -> {body.render()!r}"))
		stream.push_front(body)

	def capture_arguments(self, macro: Macro, invocation: Token, stream: TokenStream)->List[NodeList]:
		if not macro.delimiters:
			return []
		# spaces after the name of a macro with parameters are skipped
		token=stream.next()
		if token.type is not TokenType.whitespace:
			stream.push_front([token])
		arguments: List[NodeList]=[]
		for delimiter in macro.delimiters:
			if delimiter:
				arguments.append(self._capture_delimited(macro, delimiter, invocation, stream))
			else:
				arguments.append(self._capture_undelimited(macro, invocation, stream))
		return arguments

	def _capture_undelimited(self, macro: Macro, invocation: Token, stream: TokenStream)->NodeList:
		token=stream.next()
		while token.type is TokenType.whitespace:
			token=stream.next()
		if token.type is TokenType.end_of_file:
			raise ExpansionError(f"EOF while parsing macro arguments of {macro.name}", invocation.location)
		if token.type is TokenType.group_end:
			raise ExpansionError(f"Argument of {macro.name} has an extra '}}'", token.location)
		if token.type is not TokenType.group_begin:
			return NodeList([token])
		argument=NodeList()
		depth=1
		while True:
			token=stream.next()
			if token.type is TokenType.end_of_file:
				raise ExpansionError(f"EOF while parsing macro arguments of {macro.name}", invocation.location)
			depth+=token.degree()
			if depth==0:
				return argument
			argument.append(token)

	def _capture_delimited(self, macro: Macro, delimiter: NodeList, invocation: Token, stream: TokenStream)->NodeList:
		"""
		Accumulate tokens until the delimiter is matched at brace depth 0.

		Text tokens are compared character by character, so a delimiter may end in the middle of a
		text token; the rest of that token is pushed back.
		"""
		pattern=list(delimiter.split_characters())
		captured: List[Token]=[]
		depth=0
		while True:
			token=stream.next()
			if token.type is TokenType.end_of_file:
				raise ExpansionError(f"EOF while parsing macro arguments of {macro.name}", invocation.location)
			units=NodeList([token]).split_characters()
			for i, unit in enumerate(units):
				captured.append(unit)
				depth+=unit.degree()
				if depth<0:
					raise ExpansionError(f"Argument of {macro.name} has an extra '}}'", unit.location)
				if depth==0 and captured[-len(pattern):]==pattern:
					rest=NodeList(units[i+1:]).merge_text()
					stream.push_front(rest)
					argument=NodeList(captured[:-len(pattern)]).merge_text()
					return argument.strip_optional_braces()

	def substitute(self, macro: Macro, arguments: List[NodeList])->NodeList:
		"""
		Replace every parameter marker in the body of *macro* by the corresponding argument.
		"""
		result=NodeList()
		for node in macro.body:
			if node.type is not TokenType.macro_arg:
				result.append(node)
				continue
			index=node.arg_index
			if not 0<=index<len(arguments):
				raise ExpansionError(
						f"Parameter {node.payload} of {macro.name} refers to argument {index+1}, "
						f"but only {len(arguments)} were captured", node.location)
			result.extend(arguments[index])
		return result
