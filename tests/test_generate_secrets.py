from generate_secrets import SECRET_NAMES, generate_secrets, main


def test_generates_every_secret():
    values = generate_secrets()
    assert set(values) == set(SECRET_NAMES)
    assert all(len(v) >= 40 for v in values.values())
    assert values["SECRET_KEY"] != values["ADMIN_API_TOKEN"]


def test_main_prints_env_lines(capsys):
    main()
    out = capsys.readouterr().out
    assert "SECRET_KEY=" in out
    assert "ADMIN_API_TOKEN=" in out
