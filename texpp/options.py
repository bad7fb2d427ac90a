"""
Resolved options for one run.
"""

from __future__ import annotations

import argparse
import enum
from dataclasses import dataclass
from typing import Optional, Tuple


DEFAULT_LINE_WIDTH=100

DEFAULT_LIST_ENVIRONMENTS: Tuple[str, ...]=("enumerate", "itemize")
"""
Environments whose content is indented like a list, see :func:`texpp.formatter.indent_lines`.
"""


class Mode(enum.Enum):
	"""
	* transform: expand macros, apply replacement rules, emit the resolved text.
	* format: reflow and indent the document without changing its meaning.
	* print_tokens: dump the token stream, one token per line.
	"""
	transform=enum.auto()
	format=enum.auto()
	print_tokens=enum.auto()


@dataclass(frozen=True)
class Options:
	"""
	Represents the configuration.

	Built from the command line with :meth:`from_args`, or directly::

		>>> Options(mode=Mode.format, line_width=80).line_width
		80
		>>> Options(line_width=0)
		Traceback (most recent call last):
			...
		ValueError: line_width must be positive, got 0
	"""
	mode: Mode=Mode.transform
	line_width: int=DEFAULT_LINE_WIDTH
	list_environments: Tuple[str, ...]=DEFAULT_LIST_ENVIRONMENTS
	debug: int=0
	max_expansions: Optional[int]=None
	output: Optional[str]=None
	encoding: str="utf-8"

	def __post_init__(self)->None:
		assert 0<=self.debug<=9
		if self.line_width<=0:
			raise ValueError(f"line_width must be positive, got {self.line_width}")
		if self.max_expansions is not None and self.max_expansions<0:
			raise ValueError(f"max_expansions must not be negative, got {self.max_expansions}")

	@staticmethod
	def from_args(args: argparse.Namespace)->Options:
		if args.print_tokens: mode=Mode.print_tokens
		elif args.format: mode=Mode.format
		else: mode=Mode.transform
		return Options(
				mode=mode,
				line_width=args.line_width,
				list_environments=DEFAULT_LIST_ENVIRONMENTS+tuple(args.enumerate_env),
				debug=args.debug,
				max_expansions=args.max_expansions,
				output=args.output,
				encoding=args.encoding,
				)
