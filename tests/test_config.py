from rtmp2hls.config import Config, default_config


def test_default_ports():
    cfg = default_config()
    assert cfg.rtmp_port == ":1935"
    assert cfg.http_port == ":8080"


def test_default_output_dir():
    assert default_config().output_dir == "./streams"


def test_default_delays():
    cfg = default_config()
    assert cfg.reconnect_delay == 5.0
    assert cfg.cleanup_delay == 2.0


def test_default_patterns():
    assert default_config().authorized_patterns == ["/live/{app}/{username}"]


def test_default_patterns_are_not_shared():
    first = default_config()
    second = default_config()
    first.authorized_patterns.append("/other/{username}")
    assert second.authorized_patterns == ["/live/{app}/{username}"]


def test_default_config_matches_plain_constructor():
    assert default_config() == Config()


def test_override_keeps_other_defaults():
    cfg = Config(output_dir="/tmp/out")
    assert cfg.output_dir == "/tmp/out"
    assert cfg.rtmp_port == ":1935"