"""
Miscellaneous utilities: file access for ``\\Include`` and debug output.
"""

from __future__ import annotations
import sys
from pathlib import Path
from typing import Callable

from .options import Options

Loader=Callable[[str], str]
"""
Reads the file with the given path and returns its content. Raises :class:`OSError` on failure.
"""


def read_file(path: str, encoding: str="utf-8")->str:
	"""
	The default :data:`Loader`.
	"""
	return Path(path).read_text(encoding=encoding)


def resolve_include(filename: str, including_file: str)->str:
	"""
	Resolve the argument of ``\\Include`` relative to the directory of the including file,
	falling back to the working directory.

	:param including_file: name of the including file. Names in angle brackets such as ``<input>``
		do not name a file on disk.
	"""
	if including_file.startswith("<"):
		return filename
	candidate=Path(including_file).parent/filename
	if candidate.is_file():
		return str(candidate)
	return filename


def debug_possibly_shorten(line: str)->str:
	"""
	>>> debug_possibly_shorten("x"*120)==("x"*100)+"..."
	True
	"""
	if len(line)>=100:
		return line[:100]+"..."
	return line


def debug_print(options: Options, level: int, message: str)->None:
	"""
	Print *message* to stderr if the debug level is at least *level*.
	"""
	if options.debug>=level:
		print(message, file=sys.stderr, flush=True)
