r"""
The token model shared by every other module.

A document is lexed into :class:`Token` objects. A run of tokens -- a macro body,
a macro argument, a delimiter, or the whole document -- is a :class:`NodeList`.

The preferred way to construct a token by hand is to call the :class:`TokenType` member::

	>>> TokenType.text("abc")
	<Token: 'abc'>
	>>> TokenType.command_sequence(r"\emph")
	<Token: \emph>
	>>> TokenType.macro_arg("##2").number
	12

Two tokens compare equal if their type and payload are equal, the location is ignored::

	>>> TokenType.text("a", SourceLocation("x.tex", 1, 1))==TokenType.text("a", SourceLocation("y.tex", 9, 9))
	True
"""

from __future__ import annotations
import collections
import dataclasses
import enum
import typing
from dataclasses import dataclass
from typing import Optional, Iterable, List, Dict


@dataclass(frozen=True)
class SourceLocation:
	"""
	Where a token starts. *line* and *column* are 1-based.

	>>> str(SourceLocation("main.tex", 3, 14))
	'main.tex:3:14'
	"""
	file: str
	line: int
	column: int

	def __str__(self)->str:
		return f"{self.file}:{self.line}:{self.column}"


class TokenType(enum.Enum):
	"""
	Enum, consist of ``text``, ``whitespace``, ``command_sequence``, etc.

	Calling a member creates a token of that type, see :meth:`__call__`.
	"""
	invalid=enum.auto()
	text=enum.auto()
	whitespace=enum.auto()
	command_sequence=enum.auto()
	macro=enum.auto()
	macro_arg=enum.auto()
	line_comment=enum.auto()
	group_begin=enum.auto()
	group_end=enum.auto()
	end_of_file=enum.auto()

	def __call__(self, payload: Optional[str]=None, location: Optional[SourceLocation]=None)->Token:
		"""
		Create a token of this type.

		*payload* may be omitted for the types that only have one possible payload::

			>>> TokenType.group_begin()
			<Token: {>
			>>> TokenType.end_of_file()
			<Token: <EOF>>
		"""
		if payload is None:
			payload=_default_payload.get(self, "")
		number=parse_macro_arg(payload) if self is TokenType.macro_arg else 0
		return Token(self, payload, location, number)

	@property
	def dump_name(self)->str:
		"""
		Name used by the token dump.

		>>> TokenType.command_sequence.dump_name
		'CommandSequence'
		"""
		return "".join(part.capitalize() for part in self.name.split("_"))


_default_payload: Dict[TokenType, str]={
		TokenType.group_begin: "{",
		TokenType.group_end: "}",
		}


def parse_macro_arg(payload: str)->int:
	"""
	Encode a macro parameter marker as an integer.

	``#1``..``#9`` become 1..9, ``##1``..``##9`` become 11..19.

	>>> parse_macro_arg("#3"), parse_macro_arg("##3")
	(3, 13)
	>>> parse_macro_arg("#0")
	Traceback (most recent call last):
		...
	ValueError: Invalid macro parameter '#0'
	"""
	hashes=len(payload)-len(payload.lstrip("#"))
	digit=payload[hashes:]
	if hashes not in (1, 2) or len(digit)!=1 or digit not in "123456789":
		raise ValueError(f"Invalid macro parameter {payload!r}")
	return int(digit)+(10 if hashes==2 else 0)


def _escape(s: str)->str:
	return s.translate({10: "\\n", 9: "\\t", 13: "\\r", 11: "\\v", 12: "\\f"})


@dataclass(frozen=True)
class Token:
	"""
	A lexed token. Called a *node* once it carries formatting metadata.

	*number* is only meaningful for :attr:`TokenType.macro_arg`, see :func:`parse_macro_arg`.
	"""
	type: TokenType
	payload: str=""
	location: Optional[SourceLocation]=dataclasses.field(default=None, compare=False)
	number: int=0

	@property
	def arg_index(self)->int:
		"""
		0-based index of the argument a macro parameter marker refers to.

		>>> TokenType.macro_arg("#1").arg_index, TokenType.macro_arg("##9").arg_index
		(0, 8)
		"""
		assert self.type is TokenType.macro_arg
		return self.number%10-1

	def degree(self)->int:
		"""
		``1`` for ``{``, ``-1`` for ``}``, ``0`` otherwise.
		"""
		if self.type is TokenType.group_begin: return 1
		if self.type is TokenType.group_end: return -1
		return 0

	def with_payload(self, payload: str)->Token:
		return dataclasses.replace(self, payload=payload)

	def repr1(self)->str:
		t=self.type
		if t is TokenType.text: return repr(self.payload)
		if t is TokenType.whitespace:
			return self.payload.replace(" ", "␣").replace("\n", "↵").replace("\t", "⇥")
		if t is TokenType.end_of_file: return "<EOF>"
		if t is TokenType.invalid: return "<invalid>"
		return _escape(self.payload)

	def __repr__(self)->str:
		return f"<Token: {self.repr1()}>"

	def describe(self)->str:
		r"""
		One line of the token dump.

		>>> TokenType.text("a\tb", SourceLocation("f.tex", 2, 5)).describe()
		'f.tex:2:5: [Text: a\\tb]'
		>>> TokenType.group_end(location=SourceLocation("f.tex", 2, 8)).describe()
		'f.tex:2:8: [GroupEnd]'
		"""
		prefix=f"{self.location}: " if self.location is not None else ""
		if self.type in (TokenType.group_begin, TokenType.group_end, TokenType.end_of_file):
			return f"{prefix}[{self.type.dump_name}]"
		return f"{prefix}[{self.type.dump_name}: {_escape(self.payload)}]"


NodeListType=typing.TypeVar("NodeListType", bound="NodeList")

if typing.TYPE_CHECKING:
	NodeListBaseClass=collections.UserList[Token]
else:
	NodeListBaseClass=collections.UserList


class NodeList(NodeListBaseClass):
	r"""
	An ordered run of tokens.

	>>> NodeList([TokenType.text("a"), TokenType.whitespace(" "), TokenType.command_sequence(r"\b")])
	<NodeList: 'a' ␣ \b>
	>>> NodeList([TokenType.text("a"), TokenType.group_begin(), TokenType.group_end()]).render()
	'a{}'
	"""

	def __repr__(self)->str:
		return "<NodeList: " + " ".join(t.repr1() for t in self) + ">"

	def render(self)->str:
		"""
		Concatenate the payloads.
		"""
		return "".join(t.payload for t in self)

	def is_balanced(self)->bool:
		degree=0
		for x in self:
			degree+=x.degree()
			if degree<0: return False
		return degree==0

	def strip_optional_braces(self: NodeListType)->NodeListType:
		"""
		Strip the braces from the given node list, if the whole list is wrapped in braces.

		>>> NodeList([TokenType.group_begin(), TokenType.text("a"), TokenType.group_end()]).strip_optional_braces()
		<NodeList: 'a'>
		>>> x=NodeList([TokenType.group_begin(), TokenType.group_end(), TokenType.group_begin(), TokenType.group_end()])
		>>> x.strip_optional_braces()==x
		True

		A copy is returned in any case.
		"""
		if (len(self)>=2 and self[0].type is TokenType.group_begin and self[-1].type is TokenType.group_end
				and NodeList(self[1:-1]).is_balanced()):
			return self[1:-1]
		return self[:]

	def split_characters(self: NodeListType)->NodeListType:
		"""
		Split every text token into one token per character, used to match delimiters
		that do not line up with token boundaries.

		>>> NodeList([TokenType.text("ab"), TokenType.whitespace(" ")]).split_characters()
		<NodeList: 'a' 'b' ␣>
		"""
		result=type(self)()
		for t in self:
			if t.type is TokenType.text and len(t.payload)>1:
				result.extend(t.with_payload(ch) for ch in t.payload)
			else:
				result.append(t)
		return result

	def merge_text(self: NodeListType)->NodeListType:
		"""
		Inverse of :meth:`split_characters`: join adjacent text tokens.
		The merged token keeps the location of its first part.

		>>> NodeList([TokenType.text("a"), TokenType.text("b"), TokenType.group_begin(), TokenType.text("c")]).merge_text()
		<NodeList: 'ab' { 'c'>
		"""
		result=type(self)()
		for t in self:
			if t.type is TokenType.text and result and result[-1].type is TokenType.text:
				result[-1]=result[-1].with_payload(result[-1].payload+t.payload)
			else:
				result.append(t)
		return result

	def without_comments(self: NodeListType)->NodeListType:
		return type(self)(t for t in self if t.type is not TokenType.line_comment)
