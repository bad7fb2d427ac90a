from pathlib import Path
from typing import Dict

import pytest

from texpp import (Assembler, DefinitionError, ExpansionError, IncludeError, LexError, Options, ParseError,
		SerializationError, TokenType, transform)


def dict_loader(files: Dict[str, str]):
	def load(path: str)->str:
		try: return files[path]
		except KeyError: raise FileNotFoundError(2, "No such file or directory", path)
	return load


class TestTransform:
	@pytest.mark.parametrize("source, expected", [
		(r"\Define\Foo{bar}\Foo", "bar"),
		(r"\Define\Greet#1,{Hello, #1!}\Greet World,", "Hello, World!"),
		("\\Define\\Foo{bar}\n\\Foo \\Foo", "bar bar"),
		("\\Define\\Foo{bar}\n\n\\Foo", "\n\nbar"),
		(r"\Define\Foo {bar}\Foo", "bar"),
		(r"\Define\Twice#1{#1#1}\Twice{ab}", "abab"),
		(r"\Define\Pair#1,#2.{#2#1}\Pair a,b.", "ba"),
		(r"\Define\Foo{one}\Foo\Define\Foo{two}\Foo", "onetwo"),
		(r"\Define\Foo{bar}\Undef\Foo\Foo", r"\Foo"),
		(r"\Undef\DoesNotExist x", " x"),
		(r"\Define\Foo{% comment" "\nbar}\\Foo", "bar"),
		("\\Define\\Foo{a% note\nb}\\Foo", "ab"),
		(r"\textbf{keep} \& this", r"\textbf{keep} \& this"),
		(r"\Define\Mk#1{\Define#1{made}}\Mk\Q \Q", " made"),
		])
	def test_transform(self, source: str, expected: str)->None:
		assert transform(source)==expected

	def test_forward_reference_stays_literal(self)->None:
		assert transform(r"\Foo \Define\Foo{bar}\Foo")==r"\Foo bar"

	def test_undef_leaves_table_unchanged(self)->None:
		assembler=Assembler()
		assembler.run("\\Define\\Foo{bar}\n\\Undef\\DoesNotExist\n")
		assert list(assembler.macros)==[r"\Foo"]

	def test_meta_command_line_break_is_consumed(self)->None:
		assert transform("\\Define\\A{a}\n\\Define\\B{b}\n\\A\\B\n")=="ab\n"


class TestReplace:
	def test_replace(self)->None:
		assert transform(r"\Replace{cat}{dog}a cat sat")=="a dog sat"

	def test_rules_apply_in_declaration_order(self)->None:
		assert transform("\\Replace{cat}{dog}\n\\Replace{dog}{wolf}\na cat and a dog")=="a wolf and a wolf"
		assert transform("\\Replace{dog}{wolf}\n\\Replace{cat}{dog}\na cat and a dog")=="a dog and a wolf"

	def test_rule_may_reference_macros(self)->None:
		assert transform(r"\Define\Animal{cat}\Replace{\Animal}{dog}a cat")=="a dog"

	def test_rule_may_reference_later_macros(self)->None:
		assert transform(r"\Replace{\Animal}{dog}\Define\Animal{cat}a cat")=="a dog"

	def test_rule_applies_to_expanded_text(self)->None:
		assert transform(r"\Define\Foo{cat}\Replace{cat}{dog}\Foo")=="dog"

	def test_rule_does_not_touch_command_sequences(self)->None:
		assert transform(r"\Replace{cat}{dog}\cat cat")==r"\cat dog"

	def test_raw_replace_straddles_macros(self)->None:
		assert transform(r"\Define\A{a}\Define\B{b}\Replace*{ab}{X}\A\B")=="X"

	def test_grouped_replace_does_not_straddle_macros(self)->None:
		assert transform(r"\Define\A{a}\Define\B{b}\Replace{ab}{X}\A\B")=="ab"

	def test_raw_replace_is_verbatim(self)->None:
		assert transform(r"\Replace*{\emph{x\}}{y}\emph{x}")=="y"
		assert transform(r"\Define\Foo{bar}\Replace*{\Foo}{baz}\Foo")=="bar"

	def test_raw_replace_after_grouped(self)->None:
		assert transform(r"\Replace{cat}{dog}\Replace*{dog}{wolf}cat")=="wolf"

	def test_raw_replace_from_expansion(self)->None:
		with pytest.raises(LexError):
			transform(r"\Define\R{\Replace*}\R{a}{b}")

	def test_unterminated_raw_operand(self)->None:
		with pytest.raises(LexError, match="Unterminated"):
			transform(r"\Replace*{a}{b")


class TestInclude:
	def test_include_with_loader(self)->None:
		loader=dict_loader({"sub.tex": "middle"})
		assert transform(r"x \Include{sub.tex} y", loader=loader)=="x middle y"

	def test_include_filename_is_trimmed_and_expanded(self)->None:
		loader=dict_loader({"chapter1.tex": "one"})
		assert transform(r"\Define\Chapter{chapter1}\Include{ \Chapter.tex }", loader=loader)=="one"

	def test_included_definitions_persist(self)->None:
		loader=dict_loader({"defs.tex": "\\Define\\Foo{bar}\n"})
		assert transform(r"\Include{defs.tex}\Foo", loader=loader)=="bar"

	def test_include_relative_to_including_file(self, tmp_path: Path)->None:
		(tmp_path/"a").mkdir()
		(tmp_path/"a"/"main.tex").write_text(r"[\Include{sub.tex}]")
		(tmp_path/"a"/"sub.tex").write_text(r"<\Include{leaf.tex}>")
		(tmp_path/"a"/"leaf.tex").write_text("leaf")
		main=tmp_path/"a"/"main.tex"
		assert transform(main.read_text(), filename=str(main))=="[<leaf>]"

	def test_arguments_continue_after_included_file(self)->None:
		loader=dict_loader({"a.tex": r"\Define\Greet#1,{Hello, #1!}\Greet"})
		assert transform(r"\Include{a.tex} World, bye", loader=loader)=="Hello, World! bye"

	def test_undelimited_argument_after_included_file(self)->None:
		loader=dict_loader({"a.tex": r"\Define\Twice#1{#1#1}\Twice"})
		assert transform(r"\Include{a.tex}{ab}c", loader=loader)=="ababc"

	def test_missing_include(self)->None:
		with pytest.raises(IncludeError, match="missing.tex"):
			transform(r"\Include{missing.tex}", loader=dict_loader({}))

	def test_error_location_in_included_file(self)->None:
		loader=dict_loader({"bad.tex": "ok\n#x"})
		with pytest.raises(LexError) as e:
			transform(r"\Include{bad.tex}", loader=loader)
		assert str(e.value).startswith("bad.tex:2:1: ")


class TestErrors:
	@pytest.mark.parametrize("source", [
		r"\Define\Foo{bar",
		r"\Define{x}",
		r"\Define\Foo",
		r"\Undef{x}",
		"a}",
		"{a",
		r"\Replace{a}",
		r"\Include x",
		])
	def test_parse_errors(self, source: str)->None:
		with pytest.raises(ParseError):
			transform(source)

	@pytest.mark.parametrize("source", [
		r"\Define\Foo#2{x}",
		r"\Define\Foo#1#1{x}",
		r"\Define\Foo##1{x}",
		r"\Define\Foo#1}{x}",
		])
	def test_definition_errors(self, source: str)->None:
		with pytest.raises(DefinitionError):
			transform(source)

	@pytest.mark.parametrize("source", [
		r"\Define\Greet#1,{Hello #1}\Greet World",
		r"\Define\F#1{#2}\F x",
		])
	def test_expansion_errors(self, source: str)->None:
		with pytest.raises(ExpansionError):
			transform(source)

	def test_recursive_macro_hits_limit(self)->None:
		with pytest.raises(ExpansionError, match="limit"):
			transform(r"\Define\Loop{\Loop}\Loop", Options(max_expansions=100))

	def test_unexpanded_macro_at_emission(self)->None:
		assembler=Assembler()
		assembler.assemble(r"\Define\Foo{bar}")
		assembler.nodes.append(TokenType.command_sequence(r"\Foo"))
		with pytest.raises(SerializationError, match="unexpanded macro"):
			assembler.emit()

	def test_unbalanced_group_location(self)->None:
		with pytest.raises(ParseError) as e:
			transform("ab\n}")
		assert str(e.value)=="<input>:2:1: Unbalanced '}'"


def test_debug_output(capsys: pytest.CaptureFixture)->None:
	transform(r"\Define\Foo{bar}\Replace{bar}{baz}\Foo", Options(debug=5))
	err=capsys.readouterr().err
	assert r"[define] \Foo with 0 parameter(s)" in err
	assert r"[expand] \Foo" in err
	assert "[replace] 'bar' -> 'baz'" in err


def test_bench_transform(benchmark)->None:
	source="\\Define\\Greet#1,{Hello, #1!}\n\\Replace{Hello}{Hi}\n" + "\\Greet World, and {\\Greet you,}\n"*200
	result=benchmark(transform, source)
	assert result.count("Hi, World!")==200
