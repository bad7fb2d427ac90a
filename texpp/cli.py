r"""
Command-line interface. Run with ``python -m texpp`` or the ``texpp`` script.

Anything that is put in the ``texppdebugextraargs`` environment variable will be appended to the
command-line arguments. For example ``texppdebugextraargs='--debug=5' texpp doc.tex`` prints every
macro expansion to stderr.

Supported command-line arguments:

.. argparse::
   :module: texpp.cli
   :func: get_parser
   :prog: texpp

"""

from __future__ import annotations

import argparse
import os
import shlex
import sys
from typing import List, Optional

from . import process
from .errors import TeXppError
from .options import DEFAULT_LINE_WIDTH, Options
from .util import read_file


def get_parser()->argparse.ArgumentParser:
	parser=argparse.ArgumentParser(prog="texpp", formatter_class=argparse.ArgumentDefaultsHelpFormatter,
			description="Expand macros in a [TeX]-like document, or reformat it.")
	parser.add_argument("filename", help="The file to be processed.")
	parser.add_argument("-o", "--output", default=None, help="The file to output to. Defaults to stdout.")
	parser.add_argument("--format", action="store_true",
					 help="Reflow and indent the document instead of expanding macros.")
	parser.add_argument("--line-width", type=int, default=DEFAULT_LINE_WIDTH,
					 help="Lines longer than this are broken by ``--format``, where possible.")
	parser.add_argument("--enumerate-env", action="append", default=[], metavar="ENV",
					 help="Additional environment to indent like ``enumerate`` and ``itemize``. May be repeated.")
	parser.add_argument("--print-tokens", action="store_true", help="Print all tokens and exit.")
	parser.add_argument("--max-expansions", type=int, default=None,
					 help="Abort after this many macro expansions. Unlimited by default.")
	parser.add_argument("--encoding", default="utf-8", help="Encoding of the input, output and included files.")
	parser.add_argument("-d", "--debug", type=int, default=0, help="Debug level. In [0..9].")
	return parser


def parse_args(argv: Optional[List[str]]=None)->argparse.Namespace:
	if argv is None: argv=sys.argv[1:]
	parser=get_parser()
	args=parser.parse_args(argv + shlex.split(os.environ.get("texppdebugextraargs", "")))
	if not 0<=args.debug<=9:
		parser.error(f"debug level must be in [0..9], got {args.debug}")
	if args.line_width<=0:
		parser.error(f"line width must be positive, got {args.line_width}")
	if args.max_expansions is not None and args.max_expansions<0:
		parser.error(f"max expansions must not be negative, got {args.max_expansions}")
	return args


def main(argv: Optional[List[str]]=None)->int:
	"""
	:returns: the exit code. 1 if processing failed; usage errors exit with code 2 from :mod:`argparse`.
	"""
	args=parse_args(argv)
	options=Options.from_args(args)
	args_filename=args.filename
	try:
		source=read_file(args_filename, options.encoding)
	except OSError as e:
		print(f"error: cannot read {args_filename}: {e.strerror or e}", file=sys.stderr)
		return 1
	try:
		result=process(source, options, args_filename)
	except TeXppError as e:
		print(f"error: {e}", file=sys.stderr)
		return 1
	if options.output is None:
		sys.stdout.write(result)
		sys.stdout.flush()
	else:
		try:
			with open(options.output, "w", encoding=options.encoding) as f:
				f.write(result)
		except OSError as e:
			print(f"error: could not open output file: {e.strerror or e}", file=sys.stderr)
			return 1
	return 0
