r"""
Convert a character stream into tokens.

The classification follows [TeX] loosely::

	>>> tokenize(r"\emph{hi} there% note" + "\n" + r"#1\&")
	<NodeList: \emph { 'hi' } ␣ 'there' % note\n #1 \&>

A :class:`Tokenizer` also owns the pushback queue used by macro expansion: tokens pushed with
:meth:`Tokenizer.push_front` are returned by :meth:`Tokenizer.next` before any more
characters are lexed.
"""

from __future__ import annotations
import collections
from typing import Deque, Iterable, Iterator, Optional, Protocol

from .errors import LexError
from .tokens import NodeList, SourceLocation, Token, TokenType

SPECIAL_CHARACTERS=frozenset("%\\{}#")
WHITESPACE=frozenset(" \t\n\r\v\f")


def is_letter(ch: str)->bool:
	return "a"<=ch<="z" or "A"<=ch<="Z" or ch=="@"


class TokenStream(Protocol):
	"""
	Anything tokens can be read from and pushed back into: a :class:`Tokenizer`, or the stack of
	tokenizers of the files being included.
	"""
	def next(self)->Token: ...
	def push_front(self, tokens: Iterable[Token])->None: ...


class Tokenizer:
	"""
	Lexer over one source string (one file).

	>>> t=Tokenizer("a{b}")
	>>> t.next(), t.next()
	(<Token: 'a'>, <Token: {>)
	>>> t.push_front([TokenType.text("x"), TokenType.text("y")])
	>>> t.next(), t.next(), t.next()
	(<Token: 'x'>, <Token: 'y'>, <Token: 'b'>)

	The end of input yields an end-of-file token repeatedly::

		>>> t.next(), t.next(), t.next()
		(<Token: }>, <Token: <EOF>>, <Token: <EOF>>)
	"""

	def __init__(self, source: str, filename: str="<input>")->None:
		self.source=source
		self.filename=filename
		self._pos=0
		self._line=1
		self._column=1
		self.pending: Deque[Token]=collections.deque()

	def __repr__(self)->str:
		return f"<Tokenizer {self.filename} at {self.here()}, {len(self.pending)} pending>"

	def here(self)->SourceLocation:
		return SourceLocation(self.filename, self._line, self._column)

	@property
	def at_eof(self)->bool:
		return not self.pending and self._pos>=len(self.source)

	def peek_char(self)->Optional[str]:
		"""
		The next unread character, ignoring the pushback queue. ``None`` at the end of input.
		"""
		if self._pos>=len(self.source): return None
		return self.source[self._pos]

	def _advance(self)->str:
		ch=self.source[self._pos]
		self._pos+=1
		if ch=="\n":
			self._line+=1
			self._column=1
		else:
			self._column+=1
		return ch

	def push_front(self, tokens: Iterable[Token])->None:
		"""
		Put *tokens* in front of everything that is still pending, keeping their order.
		"""
		self.pending.extendleft(reversed(list(tokens)))

	def next(self)->Token:
		if self.pending:
			return self.pending.popleft()
		return self.lex()

	def __iter__(self)->Iterator[Token]:
		"""
		Iterate over the tokens until (excluding) the end of input.
		"""
		while True:
			token=self.next()
			if token.type is TokenType.end_of_file: return
			yield token

	def lex(self)->Token:
		"""
		Lex one token from the characters.
		"""
		location=self.here()
		ch=self.peek_char()
		if ch is None:
			return TokenType.end_of_file(location=location)
		if ch=="%":
			return self._lex_line_comment(location)
		if ch=="\\":
			return self._lex_command_sequence(location)
		if ch=="{":
			self._advance()
			return TokenType.group_begin(location=location)
		if ch=="}":
			self._advance()
			return TokenType.group_end(location=location)
		if ch=="#":
			return self._lex_macro_arg(location)
		start=self._pos
		if ch in WHITESPACE:
			while self._pos<len(self.source) and self.source[self._pos] in WHITESPACE:
				self._advance()
			return TokenType.whitespace(self.source[start:self._pos], location)
		while self._pos<len(self.source):
			ch=self.source[self._pos]
			if ch in SPECIAL_CHARACTERS or ch in WHITESPACE: break
			self._advance()
		return TokenType.text(self.source[start:self._pos], location)

	def _lex_line_comment(self, location: SourceLocation)->Token:
		# the newline belongs to the comment
		start=self._pos
		end=self.source.find("\n", start)
		end=len(self.source) if end==-1 else end+1
		while self._pos<end: self._advance()
		return TokenType.line_comment(self.source[start:end], location)

	def _lex_command_sequence(self, location: SourceLocation)->Token:
		self._advance()  # '\'
		if self._pos>=len(self.source):
			raise LexError("Dangling backslash at end of file", location)
		ch=self._advance()
		name="\\"+ch
		if is_letter(ch):
			while self._pos<len(self.source) and is_letter(self.source[self._pos]):
				name+=self._advance()
		return TokenType.command_sequence(name, location)

	def _lex_macro_arg(self, location: SourceLocation)->Token:
		marker=self._advance()  # '#'
		if self.peek_char()=="#":
			marker+=self._advance()
		ch=self.peek_char()
		if ch is None or ch not in "123456789":
			found="end of file" if ch is None else repr(ch)
			raise LexError(f"Malformed macro parameter: expected a digit 1-9 after {marker!r}, found {found}", location)
		marker+=self._advance()
		return TokenType.macro_arg(marker, location)

	def skip_whitespace_characters(self)->None:
		while self.peek_char() in WHITESPACE:
			self._advance()

	def read_raw_group(self)->str:
		r"""
		Read a ``{...}`` operand directly from the characters, bypassing tokenization.

		Reading stops at the first unescaped ``}``. ``\{``, ``\}``, ``\\`` stand for the character
		after the backslash, any other ``\x`` is kept as the two characters ``\x``.

		>>> t=Tokenizer(r" {a\}b\\c\d} rest")
		>>> t.read_raw_group()
		'a}b\\c\\d'
		>>> Tokenizer("{abc").read_raw_group()
		Traceback (most recent call last):
			...
		texpp.errors.LexError: <input>:1:1: Unterminated \Replace* operand
		"""
		assert not self.pending, "raw operands can only be read from the characters"
		self.skip_whitespace_characters()
		location=self.here()
		if self.peek_char()!="{":
			found="end of file" if self.peek_char() is None else repr(self.peek_char())
			raise LexError(f"Expected '{{' to start a \\Replace* operand, found {found}", location)
		self._advance()
		result=[]
		while True:
			if self._pos>=len(self.source):
				raise LexError("Unterminated \\Replace* operand", location)
			ch=self._advance()
			if ch=="}":
				return "".join(result)
			if ch=="\\":
				if self._pos>=len(self.source):
					raise LexError("Unterminated \\Replace* operand", location)
				escaped=self._advance()
				result.append(escaped if escaped in "\\{}" else "\\"+escaped)
			else:
				result.append(ch)


def tokenize(source: str, filename: str="<input>")->NodeList:
	"""
	Lex the whole *source*, without the final end-of-file token.
	"""
	return NodeList(Tokenizer(source, filename))
