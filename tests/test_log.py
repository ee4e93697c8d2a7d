from raceframes.log import LOG_FILE_ENV, Logger, make_logger


def test_logger_writes_lines(tmp_path):
    log = Logger(log_file=tmp_path / "logs" / "run.txt", stamp=False)
    log.msg("start")
    log.kv("frames", 3)
    log.kvs(imputed=1, races=2)
    assert (tmp_path / "logs" / "run.txt").read_text(encoding="utf-8").splitlines() == [
        "start",
        "frames=3",
        "imputed=1 races=2",
    ]


def test_make_logger_paths(tmp_path, monkeypatch):
    monkeypatch.delenv(LOG_FILE_ENV, raising=False)
    default = make_logger(tmp_path, name="analyze")
    assert default.log_file.parent == tmp_path
    assert default.log_file.name.endswith("_analyze.txt")

    monkeypatch.setenv(LOG_FILE_ENV, str(tmp_path / "env.txt"))
    assert make_logger(tmp_path).log_file == tmp_path / "env.txt"

    explicit = make_logger(tmp_path, log_file=tmp_path / "explicit.txt")
    assert explicit.log_file == tmp_path / "explicit.txt"
