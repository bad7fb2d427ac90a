r"""
Format mode: reflow and indent a document without expanding anything.

Formatting runs in two passes. :class:`Reflow` decides where the line breaks go,
:func:`indent_lines` trims every line and indents it according to the environments, conditionals
and groups that are open::

	>>> print(format_source("\\begin{itemize}\n\\item one\n\\item two\n\\end{itemize}"), end="")
	\begin{itemize}
	    \item one
	    \item two
	\end{itemize}

Formatting is idempotent: formatting the output again yields the same text.
"""

from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from .lexer import tokenize
from .options import DEFAULT_LINE_WIDTH, DEFAULT_LIST_ENVIRONMENTS, Options
from .tokens import NodeList, Token, TokenType
from .util import debug_print

DEFINITION_KEYWORDS=frozenset({r"\def", r"\Define", r"\Defun", r"\Eval"})
"""
Command sequences whose body group is laid out like a block when it spans several lines.
"""

TABLE_RULES=frozenset({r"\hline", r"\cline"})

NOT_CONDITIONALS=frozenset({r"\iff"})
r"""
Command sequences starting with ``\if`` that are not closed by ``\fi``.
"""

INDENT_WIDTH=4
LIST_INDENT_WIDTH=10
ITEM_OUTDENT=6


@dataclass
class Checkpoint:
	"""
	Position of an opening construct in the output of :class:`Reflow`.

	:param index: index of the first chunk of the construct.
	:param open_braces: only used for definitions, number of unbalanced ``{`` in the body.
	:param items: only used for environments, chunk indices of the ``\\item`` kept on the line of the ``\\begin``.
	"""
	line: int
	index: int
	open_braces: int=0
	items: List[int]=field(default_factory=list)


def count_newlines(token: Token)->int:
	r"""
	Number of newlines in *token*, capped at 2. Two newlines or more are a paragraph break.

	>>> count_newlines(TokenType.whitespace("\n \n\n"))
	2
	"""
	return min(token.payload.count("\n"), 2)


def is_conditional(name: str)->bool:
	return name.startswith(r"\if") and name not in NOT_CONDITIONALS


def _is_single_line_break(token: Token)->bool:
	return token.type is TokenType.whitespace and count_newlines(token)==1


class Reflow:
	r"""
	First formatting pass: decide where lines break.

	The output is kept as a list of chunks. Line breaks discovered late, for example before a
	``\begin`` once its ``\end`` turns out to be on a different line, are recorded by chunk index
	in :attr:`breaks_before` and only materialized by :meth:`render`.

	>>> Reflow(tokenize("one two three four five six seven eight nine ten"), line_width=20).run()
	'one two three four\nfive six seven eight\nnine ten\n'

	``line`` is not an exact line count, it only tells whether two tokens are on the same line.
	"""

	def __init__(self, tokens: Iterable[Token], line_width: int=DEFAULT_LINE_WIDTH, options: Options=Options())->None:
		self.tokens: List[Token]=list(tokens)
		self.line_width=line_width
		self.options=options

		self.chunks: List[str]=[]
		self.breaks_before: Set[int]=set()
		self.line=1
		self.col=0
		self.last_ws: Optional[int]=None
		"""
		Chunk index of the last space inserted on the current line, where the line may be broken
		if it becomes too long.
		"""
		self.has_ws=False
		self.break_if_not_text=False
		self.last_was_seq_or_group_end=False
		self.env_end_arg_depth=0
		self.def_stack: List[Checkpoint]=[]
		self.if_stack: List[Checkpoint]=[]
		self.begin_stack: List[Checkpoint]=[]

		self.index=0
		self.discard=True

	# ======== output primitives

	def emit(self, text: str)->None:
		self.chunks.append(text)
		self.col+=len(text)

	def newline(self)->None:
		if self.col>self.line_width and self.last_ws is not None:
			self.reflow_tail()
		self.chunks.append("\n")
		self.col=0
		self.last_ws=None
		self.line+=1

	def space(self)->None:
		if self.col!=0:
			self.last_ws=len(self.chunks)
			self.chunks.append(" ")
			self.has_ws=True
			self.col+=1

	def preceded_by_newline(self, index: int)->bool:
		"""
		Whether the chunk at *index* starts a line. The start of the output counts as one.
		"""
		if index in self.breaks_before:
			return True
		for chunk in reversed(self.chunks[:index]):
			if chunk:
				return chunk.endswith("\n")
		return True

	def break_before(self, checkpoint: Checkpoint)->None:
		if not self.preceded_by_newline(checkpoint.index):
			self.breaks_before.add(checkpoint.index)

	def reflow_tail(self)->None:
		"""
		Turn the last inserted space into a line break and recompute the column.
		Open constructs that start after the break move to the new line.
		"""
		assert self.last_ws is not None
		self.chunks[self.last_ws]="\n"
		tail=self.render_range(self.last_ws+1)
		self.col=len(tail)-(tail.rfind("\n")+1)
		self.line+=1
		for checkpoint in self.begin_stack+self.if_stack+self.def_stack:
			if checkpoint.index>self.last_ws:
				checkpoint.line=self.line
		self.last_ws=None

	def render_range(self, start: int=0)->str:
		return "".join(
				("\n"+chunk if i in self.breaks_before else chunk)
				for i, chunk in enumerate(self.chunks[start:], start)
				)

	def render(self)->str:
		return self.render_range().rstrip("\n")+"\n"

	# ======== token cursor

	@property
	def token(self)->Token:
		return self.tokens[self.index]

	def advance(self)->bool:
		"""
		Move to the next token. Return whether there is one.
		"""
		self.index+=1
		return self.index<len(self.tokens)

	def peek(self, offset: int)->Optional[Token]:
		i=self.index+offset
		if i<len(self.tokens): return self.tokens[i]
		return None

	def discard_if_line_break(self)->None:
		"""
		Called with the cursor on a token that has not been handled yet: drop it if it is a single line break.
		"""
		self.discard=_is_single_line_break(self.token)

	def provide_newline(self)->None:
		"""
		End the line after the current token. A comment that follows stays on this line,
		and a single line break that follows is dropped.
		"""
		if self.advance(): self.end_line()

	def end_line(self)->None:
		"""
		Like :meth:`provide_newline`, with the cursor already on the token that follows.
		"""
		if self.token.type is TokenType.line_comment:
			comment=self.token.payload
			self.chunks.append(comment[:-1] if comment.endswith("\n") else comment)
			if not self.advance(): return
		self.discard_if_line_break()
		self.newline()

	# ======== main loop

	def run(self)->str:
		while self.index<len(self.tokens):
			self.discard=True
			token=self.token
			if self.options.debug>=5:
				debug_print(self.options, 5, f"[reflow] line={self.line} col={self.col} {token!r}")
			if token.type is not TokenType.whitespace:
				self.has_ws=False
			if self.break_if_not_text:
				if token.type is not TokenType.text:
					self.newline()
				self.break_if_not_text=False
			self.handle(token)
			self.last_was_seq_or_group_end=token.type in (TokenType.command_sequence, TokenType.macro, TokenType.group_end)
			if self.discard:
				self.index+=1
		if self.col>self.line_width and self.last_ws is not None:
			self.reflow_tail()
		return self.render()

	def handle(self, token: Token)->None:
		t=token.type
		if t in (TokenType.text, TokenType.macro_arg):
			self.emit(token.payload)
		elif t in (TokenType.command_sequence, TokenType.macro):
			self.handle_command_sequence(token)
		elif t is TokenType.line_comment:
			self.chunks.append(token.payload)
			if token.payload.endswith("\n"):
				self.col=0
				self.last_ws=None
				self.line+=1
			else:
				self.col+=len(token.payload)
		elif t is TokenType.whitespace:
			self.handle_whitespace(token)
		elif t is TokenType.group_begin:
			self.handle_group_begin()
		elif t is TokenType.group_end:
			self.handle_group_end()
		else:
			raise ValueError(f"Cannot format {t.dump_name} token at {token.location}")

	def handle_command_sequence(self, token: Token)->None:
		name=token.payload
		if name==r"\begin":
			self.begin_environment()
			return
		if name==r"\end":
			self.end_environment()
			return
		if name==r"\item":
			if self.begin_stack and self.begin_stack[-1].line==self.line:
				# broken later if the environment does not stay on one line
				self.begin_stack[-1].items.append(len(self.chunks))
			elif self.col!=0:
				self.newline()
		elif name in DEFINITION_KEYWORDS:
			self.def_stack.append(Checkpoint(self.line, len(self.chunks)))
		elif name==r"\fi":
			if self.if_stack:
				checkpoint=self.if_stack.pop()
				if checkpoint.line!=self.line:
					self.break_before(checkpoint)
					if self.col!=0: self.newline()
		elif is_conditional(name):
			self.if_stack.append(Checkpoint(self.line, len(self.chunks)))
		elif name==r"\[":
			if self.col!=0: self.newline()
		elif name==r"\]":
			self.emit(name)
			self.provide_newline()
			return

		self.emit(name)
		if name.endswith("\n"):
			# control space at the end of a line
			self.line+=1
			self.col=0
			self.last_ws=None

		if name==r"\\" or name in TABLE_RULES:
			if not self.advance(): return
			# rules following a row end stay on its line
			while self.token.type is TokenType.command_sequence and self.token.payload in TABLE_RULES:
				self.emit(self.token.payload)
				if not self.advance(): return
			self.end_line()

	def begin_environment(self)->None:
		following=[self.peek(i) for i in (1, 2, 3)]
		if (following[0] is not None and following[0].type is TokenType.group_begin
				and following[1] is not None and following[1].type is TokenType.text and following[1].payload=="document"
				and following[2] is not None and following[2].type is TokenType.group_end):
			if self.col!=0: self.newline()
			self.begin_stack.append(Checkpoint(self.line, len(self.chunks)))
			self.emit(r"\begin{document}")
			self.newline()
			self.index+=3
			if not self.advance(): return
			self.discard_if_line_break()
			return
		self.begin_stack.append(Checkpoint(self.line, len(self.chunks)))
		self.emit(r"\begin")

	def end_environment(self)->None:
		if self.begin_stack:
			checkpoint=self.begin_stack.pop()
			if checkpoint.line!=self.line:
				self.break_before(checkpoint)
				for index in checkpoint.items:
					if not self.preceded_by_newline(index):
						self.breaks_before.add(index)
				if self.col!=0: self.newline()
				self.emit(r"\end")
				if not self.advance(): return
				if self.token.type is TokenType.group_begin:
					self.emit("{")
					self.env_end_arg_depth+=1
					if not self.advance(): return
				self.discard=False
				return
		self.emit(r"\end")

	def handle_whitespace(self, token: Token)->None:
		newlines=count_newlines(token)
		if newlines==2:
			if self.col>self.line_width and self.last_ws is not None:
				self.reflow_tail()
			self.chunks.append("\n")
			self.newline()
		elif self.col>self.line_width:
			if self.last_ws is not None:
				self.reflow_tail()
			if self.col>self.line_width:
				self.newline()
			else:
				if newlines==1: self.break_if_not_text=True
				self.space()
		elif self.last_was_seq_or_group_end and newlines:
			self.newline()
		elif not self.has_ws and self.col!=0:
			# a manual line break is kept if the next token is not text
			if newlines==1: self.break_if_not_text=True
			self.space()

	def handle_group_begin(self)->None:
		if self.env_end_arg_depth:
			self.env_end_arg_depth+=1
		elif self.def_stack:
			checkpoint=self.def_stack[-1]
			checkpoint.open_braces+=1
			if checkpoint.open_braces==1:
				# keep a line break after the "{" of a definition body
				self.emit("{")
				if not self.advance(): return
				if self.token.type is TokenType.whitespace and count_newlines(self.token)>=1:
					if count_newlines(self.token)>1: self.chunks.append("\n")
					self.newline()
				else:
					self.discard=False
				return
		self.emit("{")

	def handle_group_end(self)->None:
		if self.env_end_arg_depth:
			self.emit("}")
			self.env_end_arg_depth-=1
			if not self.env_end_arg_depth:
				self.provide_newline()
			return
		if self.def_stack and self.def_stack[-1].open_braces>0:
			checkpoint=self.def_stack[-1]
			checkpoint.open_braces-=1
			if checkpoint.open_braces==0:
				self.def_stack.pop()
				if checkpoint.line!=self.line:
					self.break_before(checkpoint)
					if self.col!=0: self.newline()
					self.emit("}")
					self.provide_newline()
					return
		self.emit("}")


_COMMAND_NAME=re.compile(r"\\(?:[A-Za-z@]+|.)")
_FI=re.compile(r"\\fi(?![A-Za-z@])")


def _leading_command(line: str)->str:
	m=_COMMAND_NAME.match(line)
	return m.group(0) if m else ""


def _environment_name(line: str, command: str)->Optional[str]:
	rest=line[len(command):]
	if not rest.startswith("{"): return None
	end=rest.find("}")
	if end<0: return None
	return rest[1:end]


def indent_lines(text: str, list_environments: Iterable[str]=DEFAULT_LIST_ENVIRONMENTS)->List[str]:
	r"""
	Second formatting pass: trim and indent every line of *text*, then collapse blank lines.

	The indentation unit is 4 spaces. Environments named in *list_environments* indent their
	content by 10 spaces, and ``\item`` lines are outdented by 6 inside them::

		>>> indent_lines("\\begin{enumerate}\n\\item a\nb\n\\end{enumerate}\n")
		['\\begin{enumerate}', '    \\item a', '          b', '\\end{enumerate}']

	Runs of blank lines collapse to a single blank line::

		>>> indent_lines("a\n\n\n\nb\n")
		['a', '', 'b']
	"""
	list_environments=set(list_environments)
	level=0
	result: List[str]=[]
	for line in text.split("\n"):
		line=line.strip()
		command=_leading_command(line)
		after=0
		is_item=False
		if command==r"\begin" or is_conditional(command):
			name=_environment_name(line, command) if command==r"\begin" else None
			if command==r"\begin" and name is not None and ("\\end{"+name+"}") in line:
				pass  # closed on the same line
			elif is_conditional(command) and _FI.search(line):
				pass
			elif name in list_environments:
				after=LIST_INDENT_WIDTH
			elif name!="document":
				after=INDENT_WIDTH
		elif command in (r"\end", r"\fi"):
			if command==r"\end" and _environment_name(line, command) in list_environments:
				level-=LIST_INDENT_WIDTH-INDENT_WIDTH
			level=max(level-INDENT_WIDTH, 0)
		elif command==r"\item":
			is_item=True

		opening=line.count("{")
		closing=line.count("}")
		if closing>opening:
			level=max(level-INDENT_WIDTH*(closing-opening), 0)

		if not line:
			result.append(line)
		elif is_item:
			result.append(" "*max(level-ITEM_OUTDENT, 0)+line)
		else:
			result.append(" "*level+line)

		level+=after
		if opening>closing:
			level+=INDENT_WIDTH*(opening-closing)
	return _collapse_blank_lines(result)


def _collapse_blank_lines(lines: List[str])->List[str]:
	result: List[str]=[]
	for line in lines:
		if not line and (not result or not result[-1]):
			continue
		result.append(line)
	while result and not result[-1]:
		result.pop()
	return result


def format_tokens(tokens: Iterable[Token], options: Options=Options())->List[str]:
	"""
	Run both passes over *tokens* and return the output lines, without line terminators.
	"""
	text=Reflow(NodeList(tokens).merge_text(), options.line_width, options).run()
	if options.debug>=5:
		debug_print(options, 5, "[reflow] result:\n"+text)
	return indent_lines(text, options.list_environments)


def format_source(source: str, options: Options=Options(), filename: str="<input>")->str:
	"""
	Format *source*. Every output line is terminated by a newline.
	"""
	return "".join(line+"\n" for line in format_tokens(tokenize(source, filename), options))
