"""
End-to-end checks through the HTTP API.
"""

import json
from unittest.mock import Mock, patch


def create_computer(client, name, status="Online"):
    resp = client.post("/api/computers", json={"name": name, "os": "Windows 11 Pro", "status": status})
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_procedure(client, name="Welcome", **extra):
    body = {"name": name, "script_type": "PowerShell", "script_content": "Write-Output 'hi'"}
    body.update(extra)
    resp = client.post("/api/procedures", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_root(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["service"] == "rmm"


def test_new_member_scenario(client, runner):
    c1 = create_computer(client, "C1", "Online")
    c2 = create_computer(client, "C2", "Offline")
    proc = create_procedure(client)
    group = client.post("/api/groups", json={
        "name": "G1",
        "associated_procedures": [{"procedure_id": proc["id"], "run_on_new_member": True}],
    }).json()

    resp = client.put(f"/api/groups/{group['id']}", json={"computer_ids": [c1["id"], c2["id"]]})

    assert resp.status_code == 200
    assert resp.json()["computer_ids"] == [c1["id"], c2["id"]]
    executions = client.get("/api/executions", params={"procedure_id": proc["id"]}).json()
    assert len(executions) == 1
    assert executions[0]["computer_id"] == c1["id"]
    assert executions[0]["status"] == "Pending"

    runner.resolve_all(success=True)

    execution = client.get(f"/api/executions/{executions[0]['id']}").json()
    assert execution["status"] == "Success"
    assert execution["output"] == "Output: OK"
    computer = client.get(f"/api/computers/{c1['id']}").json()
    assert computer["group_ids"] == [group["id"]]


def test_invalid_schedule_is_rejected_without_change(client):
    proc = create_procedure(client)
    group = client.post("/api/groups", json={"name": "G"}).json()

    resp = client.put(f"/api/groups/{group['id']}", json={
        "name": "Renamed",
        "associated_procedures": [{"procedure_id": proc["id"], "schedule": {"type": "weekly", "time": "02:00"}}],
    })

    assert resp.status_code == 422
    assert client.get(f"/api/groups/{group['id']}").json()["name"] == "G"


def test_unknown_references(client):
    assert client.get("/api/computers/comp-nope").status_code == 404
    assert client.delete("/api/groups/group-nope").status_code == 404
    resp = client.post("/api/groups", json={"name": "G", "computer_ids": ["comp-nope"]})
    assert resp.status_code == 404


def test_execute_endpoint_reports_skipped(client, runner):
    on = create_computer(client, "On")
    off = create_computer(client, "Off", "Offline")
    proc = create_procedure(client)

    resp = client.post(f"/api/procedures/{proc['id']}/execute", json={"computer_ids": [on["id"], off["id"]]})

    assert resp.status_code == 202
    body = resp.json()
    assert [e["computer_id"] for e in body["executions"]] == [on["id"]]
    assert body["skipped_computer_ids"] == [off["id"]]
    assert len(runner.submitted) == 1


def test_execute_requires_targets(client):
    proc = create_procedure(client)
    resp = client.post(f"/api/procedures/{proc['id']}/execute", json={"computer_ids": []})
    assert resp.status_code == 422


def test_windows_update_procedure_via_api(client):
    proc = create_procedure(
        client, "Patch", procedure_system_type="WindowsUpdate", script_type="CMD", run_as_user=True
    )
    assert proc["script_type"] == "PowerShell"
    assert proc["run_as_user"] is False


def test_group_move_endpoint(client):
    p1, p2 = create_procedure(client, "P1"), create_procedure(client, "P2")
    group = client.post("/api/groups", json={
        "name": "G",
        "associated_procedures": [{"procedure_id": p1["id"]}, {"procedure_id": p2["id"]}],
    }).json()

    resp = client.post(f"/api/groups/{group['id']}/procedures/{p2['id']}/move", params={"direction": "up"})

    assert resp.status_code == 200
    assert [a["procedure_id"] for a in resp.json()["associated_procedures"]] == [p2["id"], p1["id"]]


def test_delete_computer_via_api(client):
    pc = create_computer(client, "Gone")
    group = client.post("/api/groups", json={"name": "G", "computer_ids": [pc["id"]]}).json()

    assert client.delete(f"/api/computers/{pc['id']}").status_code == 200

    assert client.get(f"/api/groups/{group['id']}").json()["computer_ids"] == []


def test_commands_flow(client):
    pc = create_computer(client, "Server")
    resp = client.post("/api/commands", json={"target_type": "computer", "target_id": pc["id"], "command": "ver"})
    assert resp.status_code == 201
    assert resp.json()[0]["status"] == "Pending"

    history = client.get("/api/commands", params={"computer_id": pc["id"]}).json()
    assert history[0]["status"] in ("Success", "Failed")
    assert "Server" in history[0]["output"]

    blank = client.post("/api/commands", json={"target_type": "computer", "target_id": pc["id"], "command": "  "})
    assert blank.status_code == 422


def test_license_endpoints(client):
    resp = client.post("/api/licenses", json={"product_name": "Zoom", "license_term": "Lifetime"})
    assert resp.status_code == 201
    lic = resp.json()
    assert lic["status_text"] == "Active"
    assert lic["expiry_date"] is None

    bad = client.post("/api/licenses", json={"product_name": "Office", "license_term": "Annual"})
    assert bad.status_code == 400

    report = client.post("/api/licenses/report")
    assert report.status_code == 400

    smtp = client.put("/api/settings/smtp", json={
        "server": "smtp.example.com", "port": 587, "from_email": "a@example.com", "default_to_email": "b@example.com",
    })
    assert smtp.status_code == 200
    report = client.post("/api/licenses/report")
    assert report.status_code == 200
    assert report.json()["recipient"] == "b@example.com"


def test_system_license_endpoints(client):
    assert client.get("/api/system-license").json()["status"] == "NotActivated"

    resp = client.put("/api/system-license", json={"license_key": "RMM-KEY-1"})

    assert resp.status_code == 200
    assert resp.json()["status"] == "Valid"
    assert resp.json()["is_valid"] is True
    assert client.put("/api/system-license", json={"license_key": "   "}).status_code == 422


def test_ai_disabled_returns_503(client):
    resp = client.post("/api/ai/generate-script", json={"description": "list files"})
    assert resp.status_code == 503


def test_ai_generate_through_api(client):
    client.put("/api/settings/ai", json={
        "global_generation_enabled": True,
        "provider_configs": [{"name": "OpenAI", "provider_type": "openai", "api_key": "sk", "is_enabled": True}],
    })
    response = Mock()
    response.raise_for_status.return_value = None
    response.json.return_value = {"choices": [{"message": {"content": json.dumps({
        "generated_script": "Get-ChildItem", "explanation": "Lists files.",
    })}}]}

    with patch("rmm.services.script_assistant.requests.post", return_value=response) as post:
        resp = client.post("/api/ai/generate-script", json={"description": "list files"})

    assert resp.status_code == 200
    assert resp.json()["generated_script"] == "Get-ChildItem"
    post.assert_called_once()


def test_dashboard(client, runner):
    on = create_computer(client, "On")
    create_computer(client, "Off", "Offline")
    proc = create_procedure(client)
    client.post(f"/api/procedures/{proc['id']}/execute", json={"computer_ids": [on["id"]]})

    body = client.get("/api/dashboard").json()

    assert body["computers"]["total"] == 2
    assert body["computers"]["Online"] == 1
    assert body["procedure_executions"]["pending"] == 1
    assert body["average_cpu_usage"] is not None


def test_monitor_crud_and_logs(client):
    resp = client.post("/api/monitors", json={
        "name": "Disk", "script_content": "Write-Output 'OK: fine'", "default_interval_value": 10,
    })
    assert resp.status_code == 201
    monitor = resp.json()

    assert client.get("/api/monitors/logs").json() == []
    assert client.get(f"/api/monitors/{monitor['id']}/logs").json() == []
    assert client.put(f"/api/monitors/{monitor['id']}", json={"default_interval_unit": "hours"}).json()[
        "default_interval_unit"] == "hours"
    assert client.delete(f"/api/monitors/{monitor['id']}").status_code == 200
    assert client.get(f"/api/monitors/{monitor['id']}").status_code == 404
