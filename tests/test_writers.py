import pytest

from api_docgen.errors import ConfigError, WriterError
from api_docgen.writers.file import FileWriter, StdoutWriter


class TestFileWriter:
    def test_writes_into_output_dir(self, tmp_path):
        writer = FileWriter()
        device = writer.init({"file_name": "api.json", "output_dir": str(tmp_path / "docs")})
        writer.write(device, '{"openapi": "3.0.0"}')
        writer.close(device)
        assert (tmp_path / "docs" / "api.json").read_text() == '{"openapi": "3.0.0"}'

    def test_defaults_to_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        writer = FileWriter()
        device = writer.init({"file_name": "api.json"})
        writer.write(device, "{}")
        writer.close(device)
        assert (tmp_path / "api.json").read_text() == "{}"

    def test_check_options_requires_file_name(self):
        with pytest.raises(ConfigError):
            FileWriter.check_options({})
        FileWriter.check_options({"file_name": "api.json"})

    def test_unwritable_destination(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        with pytest.raises(WriterError, match="Cannot open"):
            FileWriter().init({"file_name": "api.json", "output_dir": str(blocker)})


class TestStdoutWriter:
    def test_echoes_content(self, capsys):
        writer = StdoutWriter()
        device = writer.init({})
        writer.write(device, '{"openapi": "3.0.0"}')
        writer.close(device)
        assert capsys.readouterr().out == '{"openapi": "3.0.0"}\n'

    def test_accepts_any_options(self):
        StdoutWriter.check_options({})
