"""
Tests for argument parsing, dispatch, output rendering and exit codes.
"""

import logging

import pytest

import barcode_cli
import engine
from engine import DecodedSymbol

ENCODE_ARGS = ["encode", "--width", "500", "--height", "500", "--data", "Sample Data and TEST Data", "qrcode"]


class TestExampleScenario:

    def test_encode_then_decode_jpg(self, tmp_path, capsys):
        """The documented qrcode example round trips through a jpg."""
        path = str(tmp_path / "test.jpg")
        assert barcode_cli.main([path] + ENCODE_ARGS) == engine.EXIT_OK
        assert capsys.readouterr().out == ""

        assert barcode_cli.main([path, "decode"]) == engine.EXIT_OK
        assert capsys.readouterr().out == "Sample Data and TEST Data\n"

    def test_encode_logs_confirmation(self, tmp_path, caplog):
        caplog.set_level(logging.INFO)
        path = str(tmp_path / "test.png")
        assert barcode_cli.main([path] + ENCODE_ARGS) == engine.EXIT_OK
        assert "Saved to" in caplog.text

    def test_data_file(self, tmp_path, capsys):
        source = tmp_path / "payload.txt"
        source.write_text("from a file", encoding="utf-8")
        path = str(tmp_path / "out.png")
        args = [path, "encode", "--width", "300", "--height", "300", "--data-file", str(source), "qrcode"]
        assert barcode_cli.main(args) == engine.EXIT_OK
        assert barcode_cli.main([path, "decode", "--show-type"]) == engine.EXIT_OK
        assert capsys.readouterr().out == "from a file (qrcode)\n"


class TestDecodeOutput:

    def test_multi_prints_one_line_per_symbol(self, two_qr_png, capsys):
        assert barcode_cli.main([str(two_qr_png), "decode", "--decode-multi"]) == engine.EXIT_OK
        lines = capsys.readouterr().out.splitlines()
        assert sorted(lines) == ["left", "right"]

    def test_without_multi_prints_one_line(self, two_qr_png, capsys):
        assert barcode_cli.main([str(two_qr_png), "decode"]) == engine.EXIT_OK
        assert len(capsys.readouterr().out.splitlines()) == 1

    def test_options_reach_engine(self, tmp_path, recording_engine, capsys):
        path = tmp_path / "in.png"
        path.write_bytes(b"image bytes")
        args = [str(path), "decode", "-d", "-t", "-b", "qrcode", "-b", "code128"]
        assert barcode_cli.main(args, recording_engine) == engine.EXIT_OK
        assert recording_engine.calls == [("decode", b"image bytes", True, True, ["qrcode", "code128"])]
        assert capsys.readouterr().out == "recorded\n"

    def test_show_type_for_each_result(self, tmp_path, recording_engine, capsys):
        recording_engine.results = [DecodedSymbol("one", "qrcode"), DecodedSymbol("two", "code128")]
        path = tmp_path / "in.png"
        path.write_bytes(b"x")
        assert barcode_cli.main([str(path), "decode", "--decode-multi", "--show-type"], recording_engine) == 0
        assert capsys.readouterr().out == "one (qrcode)\ntwo (code128)\n"


class TestExitCodes:

    def test_not_found(self, blank_png):
        assert barcode_cli.main([str(blank_png), "decode"]) == engine.EXIT_NOT_FOUND

    def test_not_found_is_logged(self, blank_png, caplog):
        barcode_cli.main([str(blank_png), "decode"])
        assert "Could not locate a barcode" in caplog.text

    def test_unreadable_image(self, tmp_path):
        path = tmp_path / "garbage.png"
        path.write_bytes(b"this is not an image")
        assert barcode_cli.main([str(path), "decode"]) == engine.EXIT_FAILURE

    def test_missing_input(self, tmp_path, recording_engine, caplog):
        path = str(tmp_path / "missing.png")
        assert barcode_cli.main([path, "decode"], recording_engine) == engine.EXIT_IO
        assert recording_engine.calls == []
        assert path in caplog.text

    def test_unwritable_output(self, tmp_path):
        path = str(tmp_path / "no" / "such" / "dir.png")
        assert barcode_cli.main([path] + ENCODE_ARGS) == engine.EXIT_IO

    def test_encoding_failure(self, tmp_path):
        path = str(tmp_path / "out.png")
        args = [path, "encode", "--width", "300", "--height", "100", "--data", "letters", "ean13"]
        assert barcode_cli.main(args) == engine.EXIT_FAILURE

    def test_missing_data_file(self, tmp_path, recording_engine):
        args = [str(tmp_path / "out.png"), "encode", "--width", "10", "--height", "10",
                "--data-file", str(tmp_path / "nope.txt"), "qrcode"]
        assert barcode_cli.main(args, recording_engine) == engine.EXIT_IO
        assert recording_engine.calls == []


class TestUsageErrors:
    """Usage errors exit with EXIT_USAGE and never reach the engine."""

    @pytest.mark.parametrize("args", [
        ["encode", "--width", "500", "--height", "500", "qrcode"],
        ["encode", "--width", "0", "--height", "500", "--data", "x", "qrcode"],
        ["encode", "--width", "wide", "--height", "500", "--data", "x", "qrcode"],
        ["encode", "--width", "500", "--height", "-1", "--data", "x", "qrcode"],
        ["encode", "--height", "500", "--data", "x", "qrcode"],
        ["encode", "--width", "500", "--height", "500", "--data", "x", "aztec"],
        ["encode", "--width", "500", "--height", "500", "--data", "x"],
        ["encode", "--width", "500", "--height", "500", "--data", "", "qrcode"],
        ["encode", "--width", "500", "--height", "500", "--data", "x", "--data-file", "f.txt", "qrcode"],
        ["encode", "--width", "500", "--height", "500", "--data", "x", "--margin", "-2", "qrcode"],
        ["encode", "--width", "500", "--height", "500", "--data", "x", "--qr-version", "41", "qrcode"],
        ["encode", "--width", "500", "--height", "500", "--data", "x", "--qr-mask-pattern", "8", "qrcode"],
        ["encode", "--width", "500", "--height", "500", "--data", "x", "--error-correction", "Z", "qrcode"],
        ["encode", "--width", "500", "--height", "500", "--data", "x", "--error-correction", "9", "pdf417"],
        ["encode", "--width", "500", "--height", "500", "--data", "x", "--pdf417-columns", "31", "pdf417"],
        ["encode", "--width", "500", "--height", "500", "--data", "x", "--character-set", "klingon", "qrcode"],
        ["decode", "--barcode-types", "morse"],
        ["transmogrify"],
    ])
    def test_rejected(self, tmp_path, recording_engine, args):
        path = str(tmp_path / "image.png")
        assert barcode_cli.main([path] + args, recording_engine) == engine.EXIT_USAGE
        assert recording_engine.calls == []

    def test_no_arguments(self, recording_engine):
        assert barcode_cli.main([], recording_engine) == engine.EXIT_USAGE

    def test_unwritable_extension(self, tmp_path, recording_engine):
        path = str(tmp_path / "image.notanimage")
        assert barcode_cli.main([path] + ENCODE_ARGS, recording_engine) == engine.EXIT_USAGE
        assert recording_engine.calls == []

    def test_usage_is_printed(self, tmp_path, capsys):
        barcode_cli.main([str(tmp_path / "image.png"), "encode", "qrcode"])
        assert "usage:" in capsys.readouterr().err


class TestEncodeOptions:

    def test_hints_reach_engine(self, tmp_path, recording_engine):
        path = str(tmp_path / "out.jpg")
        args = [path, "encode", "--width", "100", "--height", "120", "--data", "x",
                "--error-correction", "q", "--character-set", "latin-1", "--margin", "2",
                "--qr-version", "3", "--qr-mask-pattern", "5", "qrcode"]
        assert barcode_cli.main(args, recording_engine) == engine.EXIT_OK
        (call,) = recording_engine.calls
        assert call[:6] == ("encode", "x", "qrcode", 100, 120, ".jpg")
        assert call[6] == engine.EncodeHints("Q", "iso8859-1", 2, 3, 5)

    def test_qr_options_ignored_for_linear(self, tmp_path, recording_engine, caplog):
        path = str(tmp_path / "out.png")
        args = [path, "encode", "--width", "300", "--height", "100", "--data", "ABC",
                "--qr-version", "3", "--margin", "5", "code128"]
        assert barcode_cli.main(args, recording_engine) == engine.EXIT_OK
        assert "Ignoring options that do not apply to code128: --qr-version" in caplog.text
        assert recording_engine.calls[0][6] == engine.EncodeHints(margin=5)


class TestHelp:

    def test_help(self, capsys):
        assert barcode_cli.main(["help"]) == engine.EXIT_OK
        out = capsys.readouterr().out
        assert "encode" in out and "decode" in out

    @pytest.mark.parametrize("topic,option", [("encode", "--width"), ("decode", "--decode-multi")])
    def test_help_topic(self, capsys, topic, option):
        assert barcode_cli.main(["help", topic]) == engine.EXIT_OK
        assert option in capsys.readouterr().out

    def test_unknown_help_topic(self, capsys):
        assert barcode_cli.main(["help", "frobnicate"]) == engine.EXIT_USAGE
        assert "unknown help topic" in capsys.readouterr().err

    def test_version(self, capsys):
        assert barcode_cli.main(["--version"]) == engine.EXIT_OK
        assert barcode_cli.__version__ in capsys.readouterr().out

    def test_help_after_verbosity_flag(self, capsys):
        assert barcode_cli.main(["-v", "help", "encode"]) == engine.EXIT_OK
        assert "--width" in capsys.readouterr().out

    def test_help_after_quiet_flag(self, capsys):
        assert barcode_cli.main(["--quiet", "help"]) == engine.EXIT_OK
        assert "decode" in capsys.readouterr().out


class TestLargeImages:

    def test_oversized_request_is_a_usage_error(self, tmp_path):
        path = str(tmp_path / "huge.png")
        args = [path, "encode", "--width", "1000000", "--height", "1000000", "--data", "x", "qrcode"]
        assert barcode_cli.main(args) == engine.EXIT_USAGE

    def test_oversized_request_is_logged(self, tmp_path, caplog):
        path = str(tmp_path / "huge.png")
        args = [path, "encode", "--width", "1000000", "--height", "100", "--data", "x", "code128"]
        barcode_cli.main(args)
        assert "at most" in caplog.text


class TestOtherSymbologies:

    @pytest.mark.parametrize("symbology,text", [
        ("datamatrix", "Data Matrix 123"),
        ("pdf417", "PDF417 payload"),
        ("gs1_128", "0109501101530003"),
    ])
    def test_encode_then_decode(self, tmp_path, capsys, symbology, text):
        path = str(tmp_path / "out.png")
        args = [path, "encode", "--width", "600", "--height", "300", "--data", text, symbology]
        assert barcode_cli.main(args) == engine.EXIT_OK
        assert barcode_cli.main([path, "decode"]) == engine.EXIT_OK
        assert capsys.readouterr().out == text + "\n"

    def test_pdf417_hints_reach_engine(self, tmp_path, recording_engine):
        args = [str(tmp_path / "out.png"), "encode", "--width", "100", "--height", "100", "--data", "x",
                "--error-correction", "4", "--pdf417-columns", "3", "pdf417"]
        assert barcode_cli.main(args, recording_engine) == engine.EXIT_OK
        assert recording_engine.calls[0][6] == engine.EncodeHints(error_correction="4", pdf417_columns=3)

    def test_force_c40_ignored_for_qrcode(self, tmp_path, recording_engine, caplog):
        args = [str(tmp_path / "out.png"), "encode", "--width", "100", "--height", "100", "--data", "x",
                "--force-c40", "qrcode"]
        assert barcode_cli.main(args, recording_engine) == engine.EXIT_OK
        assert "--force-c40" in caplog.text
        assert recording_engine.calls[0][6] == engine.EncodeHints()

    def test_decode_filter_for_isbn10(self, tmp_path, capsys):
        path = str(tmp_path / "isbn.png")
        args = [path, "encode", "--width", "800", "--height", "200", "--data", "0306406152", "isbn10"]
        assert barcode_cli.main(args) == engine.EXIT_OK
        assert barcode_cli.main([path, "decode", "-b", "isbn10", "--show-type"]) == engine.EXIT_OK
        assert capsys.readouterr().out == "0306406152 (isbn10)\n"
