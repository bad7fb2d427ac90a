import pytest

from texpp import Options, TokenType, reformat, tokenize
from texpp.formatter import Reflow, format_tokens, indent_lines
from texpp.options import DEFAULT_LIST_ENVIRONMENTS, Mode


def reflow(source: str, line_width: int=100)->str:
	return Reflow(tokenize(source), line_width).run()


DOCUMENT=r"""\documentclass{article}
\begin{document}
Some text here.
\begin{itemize}
\item one
\item two
\end{itemize}
\end{document}
"""

DOCUMENT_FORMATTED=r"""\documentclass{article}
\begin{document}
Some text here.
\begin{itemize}
    \item one
    \item two
\end{itemize}
\end{document}
"""

IDEMPOTENCE_CASES=[
	DOCUMENT,
	"\\def\\foo#1{\n    bar #1\n}",
	"text \\begin{center}\nfoo\n\\end{center}",
	"a & b \\\\\\hline\nc & d \\\\\n",
	"\\ifx\\a\\b\nyes\n\\fi",
	"first paragraph\n\n\n\nsecond paragraph",
	"Lorem ipsum dolor sit amet, consectetur adipiscing elit, sed do eiusmod tempor incididunt ut labore et dolore magna aliqua. Ut enim ad minim veniam, quis nostrud exercitation ullamco laboris nisi ut aliquip ex ea commodo consequat.",
	"\\begin{enumerate}\n\\item a\n\\begin{itemize}\n\\item b\n\\end{itemize}\n\\end{enumerate}",
	"\\begin{itemize}\\item a\\end{itemize}",
	"text \\[ x \\] more",
	]


class TestReflow:
	def test_width(self)->None:
		assert reflow("one two three four five six seven eight nine ten", 20)=="one two three four\nfive six seven eight\nnine ten\n"

	def test_overlong_word_gets_its_own_line(self)->None:
		assert reflow("short averyveryverylongword end", 10)=="short\naveryveryverylongword\nend\n"

	def test_reflow_at_end_of_input(self)->None:
		assert reflow("aaa bbb", 5)=="aaa\nbbb\n"

	def test_no_line_exceeds_width(self)->None:
		words="Lorem ipsum dolor sit amet, consectetur adipiscing elit, sed do eiusmod tempor incididunt ut labore".split()
		lines=format_tokens(tokenize(" ".join(words*5)), Options(mode=Mode.format, line_width=30))
		assert all(len(line)<=30 for line in lines)
		assert " ".join(lines).split()==words*5

	def test_inline_environment_stays_inline(self)->None:
		assert reflow(r"\begin{itemize}\item a\end{itemize}")=="\\begin{itemize}\\item a\\end{itemize}\n"

	def test_environment_on_several_lines(self)->None:
		assert reflow("text \\begin{center}\nfoo\n\\end{center}")=="text \n\\begin{center}\nfoo \n\\end{center}\n"

	def test_begin_and_end_land_on_their_own_lines(self)->None:
		assert reflow("a \\begin{center} b\n\\emph{c} \\end{center} d").split("\n")==[
				"a ", "\\begin{center} b ", "\\emph{c} ", "\\end{center}", "d", ""]

	def test_joined_lines_count_as_one(self)->None:
		assert reflow("\\begin{center} b\nc \\end{center}")=="\\begin{center} b c \\end{center}\n"

	def test_item_after_begin_breaks_when_environment_spans_lines(self)->None:
		assert reflow("\\begin{itemize}\\item a\n\\item b\n\\end{itemize}").split("\n")==[
				"\\begin{itemize}", "\\item a ", "\\item b ", "\\end{itemize}", ""]

	def test_wrapped_environment_is_closed_on_its_own_line(self)->None:
		assert reflow("\\begin{center}aaa bbb ccc ddd eee fff ggg\\end{center}", 20).split("\n")==[
				"\\begin{center}aaa", "bbb ccc ddd eee fff", "ggg", "\\end{center}", ""]

	def test_begin_document_on_its_own_line(self)->None:
		assert reflow("x \\begin{document}\ny\\end{document}")=="x \n\\begin{document}\ny\n\\end{document}\n"

	def test_definition(self)->None:
		assert reflow("\\def\\foo#1{\n    bar #1\n}")=="\\def\\foo#1{\nbar #1 \n}\n"

	def test_inline_definition(self)->None:
		assert reflow(r"\Define\Foo{bar} x")=="\\Define\\Foo{bar} x\n"

	def test_comment_after_closing_brace(self)->None:
		assert reflow("\\def\\foo{\nbar\n}% note\nnext")=="\\def\\foo{\nbar \n}% note\nnext\n"

	def test_conditional(self)->None:
		assert reflow("\\ifx\\a\\b\nyes\n\\fi")=="\\ifx\\a\\b\nyes \n\\fi\n"
		assert reflow(r"\ifx\a\b yes\else no\fi")=="\\ifx\\a\\b yes\\else no\\fi\n"

	def test_iff_is_not_a_conditional(self)->None:
		r=Reflow(tokenize(r"a \iff b"))
		assert r.run()=="a \\iff b\n"
		assert r.if_stack==[]

	def test_table_rows(self)->None:
		assert reflow("a & b \\\\\\hline\nc & d \\\\\n")=="a & b \\\\\\hline\nc & d \\\\\n"
		assert reflow("a & b \\\\ c & d \\\\")=="a & b \\\\\nc & d \\\\\n"
		assert reflow("a \\\\% c\nb")=="a \\\\% c\nb\n"

	def test_display_math(self)->None:
		assert reflow(r"text \[ x \] more")=="text \n\\[ x \\]\nmore\n"

	def test_paragraph_break(self)->None:
		assert reflow("a\n\n\n\nb")=="a\n\nb\n"

	def test_manual_line_break_before_command_is_kept(self)->None:
		assert reflow("some text\n\\command")=="some text \n\\command\n"

	def test_manual_line_break_before_text_is_reflowed(self)->None:
		assert reflow("some\ntext")=="some text\n"

	def test_output_ends_with_one_newline(self)->None:
		assert reflow("a\n\n")=="a\n"
		assert reflow("")=="\n"

	def test_invalid_token(self)->None:
		with pytest.raises(ValueError):
			Reflow([TokenType.invalid("?")]).run()


class TestIndent:
	def test_blank_lines_collapse(self)->None:
		assert indent_lines("a\n\n\n\nb\n")==["a", "", "b"]
		assert indent_lines("\n\na\n\n")==["a"]

	def test_nested_enumerate(self)->None:
		text="\\begin{enumerate}\n\\item a\n\\begin{enumerate}\n\\item b\n\\end{enumerate}\n\\end{enumerate}\n"
		assert indent_lines(text)==[
				"\\begin{enumerate}",
				"    \\item a",
				" "*10+"\\begin{enumerate}",
				" "*14+"\\item b",
				" "*10+"\\end{enumerate}",
				"\\end{enumerate}",
				]

	def test_environment(self)->None:
		assert indent_lines("\\begin{center}\n  x  \n\\end{center}")==["\\begin{center}", "    x", "\\end{center}"]

	def test_document_is_not_indented(self)->None:
		assert indent_lines("\\begin{document}\nx\n\\end{document}")==["\\begin{document}", "x", "\\end{document}"]

	def test_custom_list_environment(self)->None:
		text="\\begin{description}\n\\item a\nb\n\\end{description}"
		assert indent_lines(text)==["\\begin{description}", "\\item a", "    b", "\\end{description}"]
		assert indent_lines(text, DEFAULT_LIST_ENVIRONMENTS+("description",))==[
				"\\begin{description}", "    \\item a", " "*10+"b", "\\end{description}"]

	def test_item_outside_list(self)->None:
		assert indent_lines("\\begin{center}\n\\item x\n\\end{center}")==["\\begin{center}", "\\item x", "\\end{center}"]

	def test_braces(self)->None:
		assert indent_lines("foo{\nbar\n}\nbaz")==["foo{", "    bar", "}", "baz"]
		assert indent_lines("a{{\nb\n}}\nc")==["a{{", "        b", "}}", "c"]

	def test_closing_never_goes_negative(self)->None:
		assert indent_lines("}\n\\end{x}\n\\fi\na")==["}", "\\end{x}", "\\fi", "a"]

	def test_self_closing_lines(self)->None:
		assert indent_lines("\\begin{center}x\\end{center}\ny")==["\\begin{center}x\\end{center}", "y"]
		assert indent_lines("\\ifx\\a\\b yes\\fi\ny")==["\\ifx\\a\\b yes\\fi", "y"]

	def test_conditional(self)->None:
		assert indent_lines("\\ifx\\a\\b\nyes\n\\fi")==["\\ifx\\a\\b", "    yes", "\\fi"]
		assert indent_lines("\\iffalse\nyes\n\\fi\n\\fill")==["\\iffalse", "    yes", "\\fi", "\\fill"]


class TestFormat:
	def test_document(self)->None:
		assert reformat(DOCUMENT)==DOCUMENT_FORMATTED

	def test_definition(self)->None:
		assert reformat("\\def\\foo#1{\n    bar #1\n}")=="\\def\\foo#1{\n    bar #1\n}\n"

	def test_environment(self)->None:
		assert reformat("text \\begin{center}\nfoo\n\\end{center}")=="text\n\\begin{center}\n    foo\n\\end{center}\n"

	def test_item_after_begin(self)->None:
		assert reformat("\\begin{itemize}\\item a\n\\item b\n\\end{itemize}\nafter")==(
				"\\begin{itemize}\n    \\item a\n    \\item b\n\\end{itemize}\nafter\n")

	def test_wrapped_environment_does_not_indent_what_follows(self)->None:
		options=Options(mode=Mode.format, line_width=20)
		source="\\begin{center}aaa bbb ccc ddd eee fff ggg\\end{center}\n\nnext"
		once=reformat(source, options)
		assert once=="\\begin{center}aaa\n    bbb ccc ddd eee fff\n    ggg\n\\end{center}\n\nnext\n"
		assert reformat(once, options)==once

	def test_enumerate_env_option(self)->None:
		options=Options(mode=Mode.format, list_environments=DEFAULT_LIST_ENVIRONMENTS+("steps",))
		assert reformat("\\begin{steps}\n\\item a\n\\end{steps}", options)=="\\begin{steps}\n    \\item a\n\\end{steps}\n"

	@pytest.mark.parametrize("source", IDEMPOTENCE_CASES)
	def test_idempotent(self, source: str)->None:
		once=reformat(source)
		assert reformat(once)==once

	def test_idempotent_narrow(self)->None:
		options=Options(mode=Mode.format, line_width=40)
		once=reformat(IDEMPOTENCE_CASES[6], options)
		assert reformat(once, options)==once

	def test_debug_output(self, capsys: pytest.CaptureFixture)->None:
		reformat("a b", Options(mode=Mode.format, debug=5))
		assert "[reflow]" in capsys.readouterr().err


def test_bench_format(benchmark)->None:
	source=DOCUMENT.replace("Some text here.", "Some text here, and a little more text to reflow. "*20)*20
	result=benchmark(reformat, source)
	assert result.count("\\begin{itemize}")==20
