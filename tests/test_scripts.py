from rmm import config
from scripts import run_rmm_service, scenario_new_member


def test_launcher_defaults_come_from_config(monkeypatch):
    calls = []
    monkeypatch.setattr(run_rmm_service.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.setattr(config, "SEED_DEMO_DATA", True)

    run_rmm_service.main([])

    assert calls == [("rmm.main:app", {"host": config.BIND_HOST, "port": config.API_PORT, "reload": False})]
    assert config.SEED_DEMO_DATA is True


def test_launcher_no_seed_flag(monkeypatch):
    monkeypatch.setattr(run_rmm_service.uvicorn, "run", lambda app, **kwargs: None)
    monkeypatch.setattr(config, "SEED_DEMO_DATA", True)

    run_rmm_service.main(["--port", "4010", "--no-seed"])

    assert config.SEED_DEMO_DATA is False


def test_scenario_targets_configured_api():
    assert scenario_new_member.scenario_new_member.__defaults__[0] == config.API_BASE_URL
