from sbc_cases.cli import parse_args


def test_parse_args_defaults():
    args = parse_args(["extract"])
    assert args.command == "extract"
    assert args.document is None
    assert args.historical is None
    assert args.overlay_config_dir is None
    assert args.strict is False


def test_parse_args_accepts_input_overrides():
    args = parse_args(["all", "--document", "page.html", "--historical", "hist.csv", "--overlay-config-dir", "config/live"])
    assert args.document == "page.html"
    assert args.historical == "hist.csv"
    assert args.overlay_config_dir == "config/live"
