"""Tests for conshell.view.buffer.OutputBuffer."""

from __future__ import annotations

import threading

import pytest

from conshell.view.buffer import MAX_LENGTH, OutputBuffer


class TestOutputBufferBasics:
    def test_empty(self) -> None:
        buf = OutputBuffer()
        assert len(buf) == 0
        assert buf.text == ""
        assert buf.prompt_offset == 0
        assert buf.max_length == MAX_LENGTH == 8192

    def test_invalid_max_length(self) -> None:
        with pytest.raises(ValueError):
            OutputBuffer(0)

    def test_append_moves_prompt(self) -> None:
        buf = OutputBuffer()
        buf.append("$ ")
        assert buf.text == "$ "
        assert buf.prompt_offset == 2
        assert buf.input_text == ""

    def test_insert_input_keeps_prompt(self) -> None:
        buf = OutputBuffer()
        buf.append("$ ")
        buf.insert_input("ls")
        assert buf.text == "$ ls"
        assert buf.prompt_offset == 2
        assert buf.input_text == "ls"

    def test_output_arriving_mid_typing_freezes_input(self) -> None:
        buf = OutputBuffer()
        buf.append("$ ")
        buf.insert_input("ec")
        buf.append("late output\n")
        assert buf.input_text == ""
        assert buf.prompt_offset == len(buf)


class TestOutputBufferInput:
    def test_replace_input(self) -> None:
        buf = OutputBuffer()
        buf.append("$ ")
        buf.insert_input("typo")
        buf.replace_input("pwd")
        assert buf.text == "$ pwd"
        assert buf.input_text == "pwd"

    def test_replace_input_with_empty(self) -> None:
        buf = OutputBuffer()
        buf.append("$ ")
        buf.insert_input("pwd")
        buf.replace_input("")
        assert buf.text == "$ "

    def test_take_input_commits(self) -> None:
        buf = OutputBuffer()
        buf.append("$ ")
        buf.insert_input("ls -l")
        assert buf.take_input() == "ls -l"
        assert buf.input_text == ""
        assert buf.text == "$ ls -l"
        assert buf.prompt_offset == len(buf)


class TestOutputBufferRemove:
    def test_remove_before_prompt_shifts_offset(self) -> None:
        buf = OutputBuffer()
        buf.append("hello world")
        buf.insert_input("x")
        assert buf.remove(0, 6) == "hello "
        assert buf.text == "worldx"
        assert buf.prompt_offset == 5

    def test_remove_in_input_keeps_offset(self) -> None:
        buf = OutputBuffer()
        buf.append("$ ")
        buf.insert_input("abc")
        assert buf.remove(3, 2) == "bc"
        assert buf.prompt_offset == 2
        assert buf.input_text == "a"

    def test_remove_straddling_prompt(self) -> None:
        buf = OutputBuffer()
        buf.append("abcd")
        buf.insert_input("ef")
        buf.remove(2, 3)
        assert buf.text == "abf"
        assert buf.prompt_offset == 2

    def test_remove_out_of_range_is_clamped(self) -> None:
        buf = OutputBuffer()
        buf.append("abc")
        assert buf.remove(2, 100) == "c"
        assert buf.remove(10, 5) == ""
        assert buf.text == "ab"
        assert buf.prompt_offset == 2


class TestOutputBufferTrimming:
    def test_no_trim_at_cap(self) -> None:
        buf = OutputBuffer(max_length=64)
        buf.append("x" * 64)
        assert len(buf) == 64
        assert buf.trimmed == 0

    def test_trim_frees_an_extra_eighth(self) -> None:
        buf = OutputBuffer(max_length=64)
        text = "".join(chr(ord("a") + i % 26) for i in range(70))
        buf.append(text)
        # 6 over the cap plus 64 // 8
        assert buf.trimmed == 14
        assert len(buf) == 56
        assert buf.text == text[14:]
        assert buf.prompt_offset == 56

    def test_never_exceeds_cap(self) -> None:
        buf = OutputBuffer(max_length=100)
        for i in range(200):
            buf.append(f"line {i}\n")
            assert len(buf) <= 100
        assert buf.text.endswith("line 199\n")

    def test_single_chunk_larger_than_cap(self) -> None:
        buf = OutputBuffer(max_length=16)
        buf.append("0123456789" * 5)
        assert len(buf) <= 16
        assert buf.text == ("0123456789" * 5)[-14:]

    def test_trim_keeps_input_region(self) -> None:
        buf = OutputBuffer(max_length=16)
        buf.append("a" * 10)
        buf.insert_input("b" * 10)
        assert buf.text == "aaaa" + "b" * 10
        assert buf.prompt_offset == 4
        assert buf.input_text == "b" * 10

    def test_trim_into_input_region(self) -> None:
        buf = OutputBuffer(max_length=16)
        buf.append("a" * 4)
        buf.insert_input("b" * 20)
        assert buf.prompt_offset == 0
        assert buf.text == "b" * 14


class TestOutputBufferClear:
    def test_clear(self) -> None:
        buf = OutputBuffer()
        buf.append("output")
        buf.insert_input("in")
        buf.clear()
        assert buf.text == ""
        assert buf.prompt_offset == 0
        assert buf.input_text == ""


class TestOutputBufferConcurrency:
    def test_concurrent_appends_and_removes(self) -> None:
        buf = OutputBuffer(max_length=512)

        def writer() -> None:
            for _ in range(500):
                buf.append("out\n")

        def editor() -> None:
            for _ in range(500):
                buf.insert_input("x")
                buf.replace_input("")

        threads = [threading.Thread(target=writer), threading.Thread(target=editor)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(buf) <= 512
        assert 0 <= buf.prompt_offset <= len(buf)
