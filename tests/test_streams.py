from adapters.streams import open_sink, read_input


class TestStreams:
    """Pruebas de lectura de input y apertura del sink"""

    def test_read_input_from_file(self, tmp_path):
        path = tmp_path / "req.xml"
        path.write_bytes(b"<req/>")
        assert read_input(path) == b"<req/>"

    def test_sink_truncates_existing_file(self, tmp_path):
        path = tmp_path / "out.txt"
        path.write_bytes(b"old content that is longer")
        with open_sink(path) as sink:
            sink.write(b"new")
        assert path.read_bytes() == b"new"

    def test_sink_creates_parent_directories(self, tmp_path):
        path = tmp_path / "a" / "b" / "out.txt"
        with open_sink(path) as sink:
            sink.write(b"x")
        assert path.read_bytes() == b"x"
