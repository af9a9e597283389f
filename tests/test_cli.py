"""Tests for the headless command-line runner."""

import pytest

from sketchsim.__main__ import main, parse_args


def write_sketch(tmp_path, text):
    path = tmp_path / "sketch.ino"
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestParseArgs:
    def test_defaults(self):
        args = parse_args([])
        assert args.sketch is None
        assert args.duration == 5.0
        assert args.adc == [] and args.digital == []

    def test_pin_values(self):
        args = parse_args(["--adc", "34=2048", "--adc", "35=1", "--digital", "4=0"])
        assert args.adc == [(34, 2048.0), (35, 1.0)]
        assert args.digital == [(4, 0.0)]

    @pytest.mark.parametrize("bad", ["34", "=5", "34=high"])
    def test_bad_pin_value(self, bad):
        with pytest.raises(SystemExit):
            parse_args(["--adc", bad])

    @pytest.mark.parametrize("argv", [["--speed", "0"], ["--duration", "-1"], ["--board", "esp32", "--config", "x.yaml"]])
    def test_rejected(self, argv):
        with pytest.raises(SystemExit):
            parse_args(argv)


class TestMain:
    def test_runs_sketch(self, tmp_path, capsys):
        path = write_sketch(tmp_path, 'void setup() {\n  Serial.println("hello");\n}\nvoid loop() {}')
        assert main([path, "--duration", "0.05"]) == 0
        captured = capsys.readouterr()
        assert "hello" in captured.out
        assert "status: running" in captured.err
        assert "status: stopped" in captured.err

    def test_adc_injection(self, tmp_path, capsys):
        path = write_sketch(tmp_path, "void setup() {\n  Serial.println(analogRead(34));\n}\nvoid loop() {}")
        main([path, "--duration", "0.05", "--adc", "34=1234"])
        assert "1234" in capsys.readouterr().out

    def test_error_exit_code(self, tmp_path, capsys):
        path = write_sketch(tmp_path, "void f() {\n  f();\n}\nvoid setup() {\n  f();\n}\nvoid loop() {}")
        assert main([path, "--duration", "2"]) == 1
        assert "[Error]" in capsys.readouterr().err

    def test_missing_sketch(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.ino")]) == 2
        assert "cannot read sketch" in capsys.readouterr().err

    def test_bad_config(self, tmp_path, capsys):
        config = tmp_path / "sim.yaml"
        config.write_text("speed: -2\n", encoding="utf-8")
        assert main(["--config", str(config), "--duration", "0"]) == 2
        assert "Configuration error" in capsys.readouterr().err

    def test_unknown_board(self, capsys):
        assert main(["--board", "uno", "--duration", "0"]) == 2

    def test_default_sketch(self, capsys):
        assert main(["--duration", "0.05"]) == 0
        assert "ESP32 Simulator Ready!" in capsys.readouterr().out
