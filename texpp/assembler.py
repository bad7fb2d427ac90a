r"""
Transform mode: resolve a document into plain text.

The :class:`Assembler` is the processing context of one run. It owns the macro table, both
rule sets, the stack of tokenizers (one per included file) and the output node list.

	>>> Assembler().run(r"\Define\Foo{bar}\Foo")
	'bar'
	>>> Assembler().run(r"\Replace{cat}{dog}a cat sat")
	'a dog sat'

Meta-commands
-------------

* ``\Define\Name{body}``, ``\Define\Name#1delim1#2delim2...{body}``
* ``\Undef\Name``
* ``\Replace{text}{replacement}``, ``\Replace*{text}{replacement}``
* ``\Include{filename}``

A line break directly after a meta-command is consumed with it, so that definitions can
be written one per line without leaving empty lines in the output.
"""

from __future__ import annotations
import functools
from typing import Callable, Dict, Iterable, List, Optional

from .errors import DefinitionError, IncludeError, LexError, ParseError, SerializationError
from .lexer import Tokenizer
from .macros import Expander, MacroTable
from .options import Options
from .replace import RawReplacementRules, ReplacementRules
from .tokens import NodeList, Token, TokenType
from .util import Loader, debug_print, read_file, resolve_include

_PARAMETER_TEXT_TYPES=(TokenType.text, TokenType.whitespace, TokenType.command_sequence)


class SourceStack:
	"""
	The tokenizers of the files being read, innermost last.

	Reading goes on in the including file once an included file is exhausted, so
	tokens are read across file boundaries as if the included content had been pasted in.
	"""

	def __init__(self, options: Options=Options())->None:
		self.options=options
		self.tokenizers: List[Tokenizer]=[]

	def enter(self, tokenizer: Tokenizer)->None:
		self.tokenizers.append(tokenizer)

	@property
	def innermost(self)->Tokenizer:
		return self.tokenizers[-1]

	def next(self)->Token:
		while True:
			token=self.innermost.next()
			if token.type is TokenType.end_of_file and len(self.tokenizers)>1:
				debug_print(self.options, 1, f"[include] leaving {self.innermost.filename}")
				self.tokenizers.pop()
				continue
			return token

	def push_front(self, tokens: Iterable[Token])->None:
		self.innermost.push_front(tokens)


class Assembler:
	"""
	:param loader: reads the files named by ``\\Include``. Defaults to :func:`~texpp.util.read_file`
		with :attr:`~texpp.options.Options.encoding`.
	"""

	def __init__(self, options: Options=Options(), loader: Optional[Loader]=None)->None:
		self.options=options
		self.loader: Loader=loader if loader is not None else functools.partial(read_file, encoding=options.encoding)
		self.macros=MacroTable()
		self.expander=Expander(self.macros, options)
		self.rules=ReplacementRules(options)
		self.raw_rules=RawReplacementRules(options)
		self.nodes=NodeList()
		self.group_count=0
		self.sources=SourceStack(options)
		self._definition_marks: Dict[str, int]={}
		"""
		For each defined macro, the length of :attr:`nodes` when it was (last) defined.
		A node before that position may legitimately carry the name as a forward reference.
		"""
		self._meta_commands: Dict[str, Callable[[Token], None]]={
				r"\Define": self._define,
				r"\Undef": self._undef,
				r"\Replace": self._replace,
				r"\Include": self._include,
				}

	@property
	def stream(self)->Tokenizer:
		"""
		The tokenizer of the innermost file being read.
		"""
		return self.sources.innermost

	def run(self, source: str, filename: str="<input>")->str:
		"""
		Resolve *source* and return the output text.
		"""
		self.assemble(source, filename)
		return self.emit()

	def assemble(self, source: str, filename: str="<input>")->None:
		"""
		Scan the whole document, filling :attr:`nodes`.
		"""
		self.sources.enter(Tokenizer(source, filename))
		while True:
			token=self.next_token()
			if token.type is TokenType.end_of_file: break
			self.dispatch(token)
		if self.group_count!=0:
			raise ParseError(f"{self.group_count} group(s) not closed at end of file", token.location)

	def next_token(self)->Token:
		"""
		Read the next token, leaving included files when they are exhausted.
		"""
		return self.sources.next()

	def dispatch(self, token: Token)->None:
		token=self.macros.classify(token)
		t=token.type
		if t is TokenType.group_begin:
			self.group_count+=1
		elif t is TokenType.group_end:
			self.group_count-=1
			if self.group_count<0:
				raise ParseError("Unbalanced '}'", token.location)
		elif t is TokenType.macro:
			self.expander.expand(token, self.sources)
			return
		elif t is TokenType.command_sequence:
			handler=self._meta_commands.get(token.payload)
			if handler is not None:
				handler(token)
				return
		self.nodes.append(token)

	# ======== parsing helpers

	def _next_significant(self)->Token:
		token=self.stream.next()
		while token.type in (TokenType.whitespace, TokenType.line_comment):
			token=self.stream.next()
		return token

	def _expect_command_sequence(self, command: Token)->Token:
		token=self._next_significant()
		if token.type is not TokenType.command_sequence:
			raise ParseError(f"Expected a command sequence after {command.payload}, found {token.type.dump_name}", token.location)
		return token

	def parse_group(self, command: Token)->NodeList:
		"""
		Read a ``{...}`` group following *command*, without expanding anything.

		Leading whitespace is skipped, the outer braces are removed, comments are dropped.
		"""
		token=self._next_significant()
		if token.type is not TokenType.group_begin:
			raise ParseError(f"Expected '{{' after {command.payload}, found {token.type.dump_name}", token.location)
		start=token.location
		nodes=NodeList()
		depth=1
		while True:
			token=self.stream.next()
			if token.type is TokenType.end_of_file:
				raise ParseError("Group terminated by end of file", start)
			depth+=token.degree()
			if depth==0:
				return nodes.without_comments()
			nodes.append(token)

	def _skip_line_break(self)->None:
		token=self.stream.next()
		if token.type is TokenType.whitespace and token.payload.count("\n")==1:
			rest=token.payload[token.payload.index("\n")+1:]
			if rest:
				self.stream.push_front([token.with_payload(rest)])
			return
		self.stream.push_front([token])

	# ======== meta-commands

	def _define(self, command: Token)->None:
		name=self._expect_command_sequence(command)
		delimiters=self._parse_parameter_text(name)
		body=self.parse_group(command)
		self.macros.define(name.payload, delimiters, body)
		self._definition_marks[name.payload]=len(self.nodes)
		debug_print(self.options, 1, f"[define] {name.payload} with {len(delimiters)} parameter(s)")
		self._skip_line_break()

	def _parse_parameter_text(self, name: Token)->List[NodeList]:
		"""
		Parse ``#1delim1#2delim2...`` up to (excluding) the ``{`` of the body.

		The parameter text is only present if a parameter marker directly follows the name.
		"""
		delimiters: List[NodeList]=[]
		token=self.stream.next()
		if token.type is not TokenType.macro_arg:
			self.stream.push_front([token])
			return delimiters
		while True:
			expected=len(delimiters)+1
			if token.number!=expected:
				raise DefinitionError(
						f"Parameters of {name.payload} must be numbered consecutively: expected #{expected}, found {token.payload}",
						token.location)
			delimiter=NodeList()
			token=self.stream.next()
			while token.type in _PARAMETER_TEXT_TYPES:
				delimiter.append(token)
				token=self.stream.next()
			delimiters.append(delimiter)
			if token.type is TokenType.group_begin:
				self.stream.push_front([token])
				return delimiters
			if token.type is not TokenType.macro_arg:
				raise DefinitionError(f"Unexpected {token.type.dump_name} in the parameter text of {name.payload}", token.location)

	def _undef(self, command: Token)->None:
		name=self._expect_command_sequence(command)
		self.macros.undef(name.payload)
		self._definition_marks.pop(name.payload, None)
		debug_print(self.options, 1, f"[undef] {name.payload}")
		self._skip_line_break()

	def _replace(self, command: Token)->None:
		stream=self.stream
		if not stream.pending and stream.peek_char()=="*":
			stream.lex()  # '*'
			pattern=stream.read_raw_group()
			replacement=stream.read_raw_group()
			self.raw_rules.add(pattern, replacement)
			debug_print(self.options, 1, f"[replace*] {pattern!r} -> {replacement!r}")
		elif stream.pending and stream.pending[0].type is TokenType.text and stream.pending[0].payload.startswith("*"):
			raise LexError(r"\Replace* must be written literally, it cannot come from a macro expansion", command.location)
		else:
			pattern_nodes=self.parse_group(command)
			replacement_nodes=self.parse_group(command)
			self.rules.add(pattern_nodes, replacement_nodes)
			debug_print(self.options, 1, f"[replace] {pattern_nodes.render()!r} -> {replacement_nodes.render()!r}")
		self._skip_line_break()

	def _include(self, command: Token)->None:
		group=self.parse_group(command)
		filename=self.macros.as_text(group).strip()
		path=resolve_include(filename, self.stream.filename)
		try:
			source=self.loader(path)
		except OSError as e:
			raise IncludeError(f"Cannot include {filename!r}: {e.strerror or e}", command.location) from e
		debug_print(self.options, 1, f"[include] entering {path}")
		self.sources.enter(Tokenizer(source, path))

	# ======== output

	def emit(self)->str:
		"""
		Apply the replacement rules and concatenate the output nodes.

		:raises SerializationError: if a macro survived expansion, which indicates a bug in the expander.
		"""
		self.rules.resolve(self.macros)
		for index, node in enumerate(self.nodes):
			t=node.type
			if t is TokenType.macro or (
					t is TokenType.command_sequence and node.payload in self.macros
					and index>=self._definition_marks.get(node.payload, 0)):
				raise SerializationError(f"Internal error: unexpanded macro {node.payload!r}", node.location)
		return self.raw_rules.apply(self.rules.apply_to_nodes(self.nodes).render())
