"""
Scenario: computers joining a group with a run-on-new-member procedure.

Against a running service:
1. Add an Online and an Offline computer
2. Create a procedure and a group that runs it on new members
3. Put both computers in the group
4. Expect exactly one execution (Online computer) and wait for its outcome

Usage:
    python scripts/scenario_new_member.py [--base-url http://localhost:3001/api]
"""
import argparse
import logging
import sys
import time
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import requests

from rmm.config import API_BASE_URL, LOG_LEVEL
from shared.logging_config import setup_logging

logger = logging.getLogger("scenario")


def scenario_new_member(base_url: str = API_BASE_URL, timeout_sec: float = 10.0) -> bool:
    suffix = str(int(time.time()))

    online = requests.post(f"{base_url}/computers", json={
        "name": f"Scenario-Online-{suffix}", "os": "Windows 11 Pro", "status": "Online",
    }).json()
    offline = requests.post(f"{base_url}/computers", json={
        "name": f"Scenario-Offline-{suffix}", "os": "Windows 10 Pro", "status": "Offline",
    }).json()

    procedure = requests.post(f"{base_url}/procedures", json={
        "name": f"Welcome Script {suffix}",
        "script_type": "PowerShell",
        "script_content": "Write-Output 'Welcome to the group'",
    }).json()

    group = requests.post(f"{base_url}/groups", json={
        "name": f"Scenario Group {suffix}",
        "associated_procedures": [
            {"procedure_id": procedure["id"], "run_on_new_member": True, "schedule": {"type": "disabled"}},
        ],
    }).json()

    resp = requests.put(f"{base_url}/groups/{group['id']}", json={
        "computer_ids": [online["id"], offline["id"]],
    })
    resp.raise_for_status()

    executions = requests.get(f"{base_url}/executions", params={"procedure_id": procedure["id"]}).json()
    logger.info(f"Executions created: {len(executions)} (expected 1)")
    if len(executions) != 1 or executions[0]["computer_id"] != online["id"]:
        logger.error("Scenario FAILED: expected one execution on the online computer")
        return False

    deadline = time.time() + timeout_sec
    execution = executions[0]
    while execution["status"] == "Pending" and time.time() < deadline:
        time.sleep(0.5)
        execution = requests.get(f"{base_url}/executions/{execution['id']}").json()

    logger.info(f"Execution {execution['id']} finished as {execution['status']}")
    print(execution["logs"])
    return execution["status"] in ("Success", "Failed")


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the new group member scenario")
    parser.add_argument("--base-url", default=API_BASE_URL)
    args = parser.parse_args()
    setup_logging("scenario", level=LOG_LEVEL)
    ok = scenario_new_member(args.base_url)
    logger.info("Scenario completed" if ok else "Scenario did not complete")
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
