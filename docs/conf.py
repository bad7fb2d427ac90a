# Sphinx configuration for the texpp documentation.

from typing import Any, List

project = 'texpp'
author = 'texpp developers'

import os
import sys
sys.path.insert(0, os.path.abspath('..'))

extensions = [
	'sphinx.ext.autodoc',
	'sphinx.ext.viewcode',
	'sphinx_rtd_theme',
	'sphinxarg.ext',
]

# texpp.util.Loader is a Callable alias, keep its name in signatures
autodoc_type_aliases = {
		'Loader': 'texpp.util.Loader',
		}
autodoc_typehints_format = 'short'

exclude_patterns = ['_build']

html_theme = 'sphinx_rtd_theme'


# written this way it only works in docstrings
macros = {
		"[TeX]": r":math:`\TeX`",
		}

def process_docstring(app: Any, what: str, name: str, obj: Any, options: Any, lines: List[str]) -> None:
	for i, line in enumerate(lines):
		for macro, replacement in macros.items():
			line = line.replace(macro, replacement)
		lines[i] = line

def env_before_read_docs(app: Any, env: Any, docnames: Any)->None:
	# docstrings are indented with tabs
	env.settings["tab_width"] = 4

def setup(app: Any)->None:
	app.connect('autodoc-process-docstring', process_docstring)
	app.connect('env-before-read-docs', env_before_read_docs)
