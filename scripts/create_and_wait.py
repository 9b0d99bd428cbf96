"""Create a project via the API and drive it through interview, analysis and generation.

Usage:
    python scripts/create_and_wait.py "Todo API" "A REST API for todo lists with users" [--auto-approve] [--skip-interview]
"""
import argparse
import sys
import time

import httpx

BASE = "http://localhost:8000/api/v1"
POLL_SECONDS = 3
WORKING = {"INTERVIEWING", "ANALYZING", "GENERATING_CODE"}


def wait_for_pause(c, pid, timeout):
    """Poll until the project leaves its *ING status; return the project."""
    start = time.time()
    while True:
        r = c.get(f"{BASE}/projects/{pid}")
        r.raise_for_status()
        project = r.json()
        elapsed = int(time.time() - start)
        mm, ss = divmod(elapsed, 60)
        print(f"  [{mm:02d}:{ss:02d}] {project['status']}")
        if project["status"] not in WORKING:
            return project
        if elapsed > timeout:
            print("Timed out waiting for the model")
            sys.exit(1)
        time.sleep(POLL_SECONDS)


def confirm(prompt, auto):
    if auto:
        print(f"{prompt} [auto-approved]")
        return True
    return input(f"{prompt} [y/N] ").strip().lower() in ("y", "yes")


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("name")
    parser.add_argument("description")
    parser.add_argument("--provider")
    parser.add_argument("--model")
    parser.add_argument("--skip-interview", action="store_true")
    parser.add_argument("--auto-approve", action="store_true")
    parser.add_argument("--timeout", type=int, default=600)
    args = parser.parse_args()

    c = httpx.Client(timeout=30)

    print("Creating project...")
    r = c.post(f"{BASE}/projects", json={
        "name": args.name,
        "description": args.description,
        "provider": args.provider,
        "model": args.model,
        "skipInterview": args.skip_interview,
    })
    if r.status_code != 201:
        print(f"Create failed: {r.status_code} {r.text[:300]}")
        sys.exit(1)
    pid = r.json()["id"]
    print(f"  Project: {pid}")

    while True:
        project = wait_for_pause(c, pid, args.timeout)
        status = project["status"]

        if status == "AWAITING_ANSWER":
            print("\n" + project["conversationHistory"][-1]["message"] + "\n")
            answer = input("Your answer (empty to skip the interview): ").strip()
            if answer:
                c.post(f"{BASE}/projects/{pid}/answer", json={"answer": answer}).raise_for_status()
            else:
                c.post(f"{BASE}/projects/{pid}/skip-interview").raise_for_status()

        elif status == "AWAITING_REQUIREMENTS_APPROVAL":
            print("\nRequirements:")
            for i, requirement in enumerate(project["pendingRequirements"], start=1):
                print(f"  {i}. {requirement}")
            approved = confirm("Approve requirements?", args.auto_approve)
            c.post(
                f"{BASE}/projects/{pid}/requirements/approval",
                json={"approved": approved},
            ).raise_for_status()

        elif status == "AWAITING_CODE_APPROVAL":
            print("\nGenerated files:")
            for generated in project["pendingCode"]:
                print(f"  {generated['path']} ({len(generated['content']):,} chars)")
            approved = confirm("Approve code?", args.auto_approve)
            c.post(
                f"{BASE}/projects/{pid}/code/approval",
                json={"approved": approved},
            ).raise_for_status()

        else:
            break

    print("\n" + "=" * 60)
    print(f"  Final status: {project['status']}")
    if project.get("failureReason"):
        print(f"  Reason: {project['failureReason']}")
    for event in c.get(f"{BASE}/projects/{pid}/events").json():
        print(f"  {event['createdAt']}  {event['eventType']}: {event['fromStatus']} -> {event['toStatus']}")


if __name__ == "__main__":
    main()
