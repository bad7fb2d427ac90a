#!/bin/python3
r"""
A macro preprocessor and formatter for [TeX]-like documents.

There are two ways to process a document.

*Transform* expands the macros defined with ``\Define``, applies the replacement rules declared
with ``\Replace`` and splices in the files named by ``\Include``. The result is plain text::

	>>> transform(r"\Define\Greet#1,{Hello, #1!}\Greet World,")
	'Hello, World!'

*Format* leaves the document unchanged in meaning, but rewraps lines that are too long and
indents environments, conditionals and definition bodies::

	>>> print(reformat("\\def\\foo#1{\n    bar #1\n}"), end="")
	\def\foo#1{
	    bar #1
	}

For debugging there is also a token dump, see :func:`dump_tokens`.

The modules, leaves first:

* :mod:`~texpp.tokens`: the token model, :class:`Token` and :class:`NodeList`.
* :mod:`~texpp.lexer`: the tokenizer, which also owns the pushback queue used by macro expansion.
* :mod:`~texpp.macros`: the macro table and the expander.
* :mod:`~texpp.replace`: replacement rules.
* :mod:`~texpp.assembler`: transform mode.
* :mod:`~texpp.formatter`: format mode.
* :mod:`~texpp.cli`: the command-line interface.

Every error detected while processing a document is fatal and raised as a subclass of
:class:`~texpp.errors.TeXppError`.
"""

from __future__ import annotations
from typing import Optional

from .assembler import Assembler
from .errors import DefinitionError, ExpansionError, IncludeError, LexError, ParseError, SerializationError, TeXppError
from .formatter import format_source
from .lexer import Tokenizer, tokenize
from .macros import Expander, Macro, MacroTable
from .options import Mode, Options
from .tokens import NodeList, SourceLocation, Token, TokenType
from .util import Loader

__all__=[
		"Assembler", "Expander", "Macro", "MacroTable", "Mode", "NodeList", "Options", "SourceLocation",
		"Token", "TokenType", "Tokenizer", "tokenize",
		"TeXppError", "LexError", "ParseError", "DefinitionError", "ExpansionError", "IncludeError", "SerializationError",
		"transform", "reformat", "dump_tokens", "process",
		]


def transform(source: str, options: Options=Options(), filename: str="<input>", loader: Optional[Loader]=None)->str:
	"""
	Expand macros, apply replacement rules and resolve includes.

	:param loader: see :class:`~texpp.assembler.Assembler`.
	"""
	return Assembler(options, loader).run(source, filename)


def reformat(source: str, options: Options=Options(), filename: str="<input>")->str:
	"""
	Reflow and indent *source*. Every output line is terminated by a newline.
	"""
	return format_source(source, options, filename)


def dump_tokens(source: str, filename: str="<input>")->str:
	r"""
	One line per token, including the final end-of-file token.

	>>> print(dump_tokens(r"\emph{a}"), end="")
	<input>:1:1: [CommandSequence: \emph]
	<input>:1:6: [GroupBegin]
	<input>:1:7: [Text: a]
	<input>:1:8: [GroupEnd]
	<input>:1:9: [EndOfFile]
	"""
	tokenizer=Tokenizer(source, filename)
	lines=[]
	while True:
		token=tokenizer.next()
		lines.append(token.describe()+"\n")
		if token.type is TokenType.end_of_file:
			return "".join(lines)


def process(source: str, options: Options=Options(), filename: str="<input>", loader: Optional[Loader]=None)->str:
	"""
	Process *source* in the mode selected by *options*.
	"""
	if options.mode is Mode.format:
		return reformat(source, options, filename)
	if options.mode is Mode.print_tokens:
		return dump_tokens(source, filename)
	return transform(source, options, filename, loader)
