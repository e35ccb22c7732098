"""End-to-end tests of the HTTP surface against a throw-away SQLite database."""
import pytest
import structlog


async def create_question(client, headers, prompt, choices):
    resp = await client.post("/admin/questions", json={"prompt": prompt}, headers=headers)
    assert resp.status_code == 201, resp.text
    question = resp.json()
    ids = {}
    for label, is_correct in choices:
        resp = await client.post(
            f"/admin/questions/{question['id']}/choices",
            json={"label": label, "is_correct": is_correct},
            headers=headers,
        )
        assert resp.status_code == 201, resp.text
        ids[label] = resp.json()["id"]
    return question["id"], ids


@pytest.fixture
async def bank(client, admin_headers):
    q1 = await create_question(client, admin_headers, "Which are even?", [("2", True), ("4", True), ("5", False)])
    q2 = await create_question(client, admin_headers, "Capital of France?", [("Paris", True), ("Rome", False)])
    return {"q1": q1, "q2": q2}


# === Quiz flow ===

async def test_start_quiz_hides_correctness(client, bank):
    resp = await client.post("/quiz/start", json={"player_name": "Ada"})

    assert resp.status_code == 201
    body = resp.json()
    assert body["total"] == 2
    assert {q["id"] for q in body["questions"]} == {bank["q1"][0], bank["q2"][0]}
    assert "is_correct" not in resp.text
    for question in body["questions"]:
        for choice in question["choices"]:
            assert set(choice.keys()) == {"id", "label"}


async def test_start_quiz_requires_player_name(client, bank):
    resp = await client.post("/quiz/start", json={"player_name": "   "})
    assert resp.status_code == 400
    assert resp.json() == {"error": "player_name is required"}

    resp = await client.post("/quiz/start", json={})
    assert resp.status_code == 400
    assert "player_name" in resp.json()["error"]


async def test_start_quiz_with_empty_bank(client):
    resp = await client.post("/quiz/start", json={"player_name": "Ada"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "No questions available"}

    resp = await client.get("/leaderboard")
    assert resp.json() == []


async def test_start_quiz_rejects_malformed_body(client, bank):
    resp = await client.post("/quiz/start", content=b"not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert "error" in resp.json()


async def test_full_run(client, bank):
    q1_id, q1 = bank["q1"]
    q2_id, q2 = bank["q2"]
    start = (await client.post("/quiz/start", json={"player_name": "Ada"})).json()
    attempt_id = start["attempt_id"]

    resp = await client.post("/quiz/answer", json={
        "attempt_id": attempt_id, "question_id": q1_id, "selected_choice_ids": [q1["2"]],
    })
    assert resp.json() == {"correct": False, "score": 0}

    resp = await client.post("/quiz/answer", json={
        "attempt_id": attempt_id, "question_id": q2_id, "selected_choice_ids": [q2["Paris"]],
    })
    assert resp.json() == {"correct": True, "score": 1}

    resp = await client.post("/quiz/answer", json={
        "attempt_id": attempt_id, "question_id": q2_id, "selected_choice_ids": [q2["Paris"]],
    })
    assert resp.status_code == 409
    assert resp.json() == {"error": "Question already answered for this attempt"}

    resp = await client.get(f"/quiz/results/{attempt_id}")
    assert resp.status_code == 200
    assert resp.json() == {
        "runId": attempt_id,
        "incorrect": [{
            "questionId": q1_id,
            "prompt": "Which are even?",
            "correctChoices": [{"id": q1["2"], "label": "2"}, {"id": q1["4"], "label": "4"}],
        }],
    }

    board = (await client.get("/leaderboard")).json()
    assert [(row["player_name"], row["score"], row["total"]) for row in board] == [("Ada", 1, 2)]


async def test_answer_validation(client, bank):
    q1_id, q1 = bank["q1"]
    attempt_id = (await client.post("/quiz/start", json={"player_name": "Ada"})).json()["attempt_id"]

    resp = await client.post("/quiz/answer", json={
        "attempt_id": attempt_id, "question_id": q1_id, "selected_choice_ids": [],
    })
    assert resp.status_code == 400
    assert resp.json() == {"error": "selected_choice_ids must be a non-empty array"}

    resp = await client.post("/quiz/answer", json={
        "attempt_id": attempt_id, "question_id": q1_id, "selected_choice_ids": "not-a-list",
    })
    assert resp.status_code == 400

    resp = await client.post("/quiz/answer", json={
        "attempt_id": "missing", "question_id": q1_id, "selected_choice_ids": [q1["2"]],
    })
    assert resp.status_code == 404


async def test_results_for_unknown_attempt(client):
    resp = await client.get("/quiz/results/nope")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Attempt not found"}


async def test_group_filtered_quiz(client, admin_headers, bank):
    q1_id, _ = bank["q1"]
    group = (await client.post("/admin/groups", json={"name": "Numbers"}, headers=admin_headers)).json()
    resp = await client.post(f"/admin/questions/{q1_id}/groups", json={"group_id": group["id"]}, headers=admin_headers)
    assert resp.status_code == 201

    body = (await client.post("/quiz/start", json={"player_name": "Ada", "group_ids": [group["id"]]})).json()

    assert [q["id"] for q in body["questions"]] == [q1_id]
    assert [g["name"] for g in (await client.get("/groups")).json()] == ["Numbers"]


async def test_sequential_settings_keep_creation_order(client, admin_headers, bank):
    resp = await client.patch("/admin/settings", json={"num_questions": 1, "randomize": False}, headers=admin_headers)
    assert resp.json() == {"num_questions": 1, "randomize": False}

    body = (await client.post("/quiz/start", json={"player_name": "Ada"})).json()
    assert body["total"] == 1
    assert body["questions"][0]["id"] == bank["q1"][0]


# === Admin ===

async def test_admin_endpoints_require_token(client):
    assert (await client.get("/admin/questions")).status_code == 401
    assert (await client.post("/admin/questions", json={"prompt": "Q"})).status_code == 401
    assert (await client.patch("/admin/settings", json={"num_questions": 3})).status_code == 401

    resp = await client.get("/admin/questions", headers={"Authorization": "Bearer admin:1:forged"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}


async def test_login_flow(client):
    resp = await client.post("/admin/login", json={"email": " Admin@Example.com ", "password": "s3cret pass"})
    assert resp.status_code == 200
    token = resp.json()["token"]

    resp = await client.get("/admin/me", headers={"X-Auth-Token": token})
    assert resp.json() == {"is_admin": True}
    assert (await client.get("/admin/me")).json() == {"is_admin": False}


async def test_login_rejects_bad_password_and_rate_limits(client):
    for _ in range(5):
        resp = await client.post("/admin/login", json={"email": "admin@example.com", "password": " s3cret pass"})
        assert resp.status_code == 401

    resp = await client.post("/admin/login", json={"email": "admin@example.com", "password": "s3cret pass"})
    assert resp.status_code == 429


async def test_admin_question_management(client, admin_headers, bank):
    q1_id, q1 = bank["q1"]

    listing = (await client.get("/admin/questions", headers=admin_headers)).json()
    assert {row["id"]: row["correct_count"] for row in listing}[q1_id] == 2

    detail = (await client.get(f"/admin/questions/{q1_id}", headers=admin_headers)).json()
    assert [c["label"] for c in detail["choices"]] == ["2", "4", "5"]
    assert detail["groups"] == []

    resp = await client.patch(f"/admin/questions/{q1_id}", json={"prompt": "x" * 2001}, headers=admin_headers)
    assert resp.status_code == 400
    resp = await client.patch(f"/admin/questions/{q1_id}", json={"prompt": "Pick the even numbers"}, headers=admin_headers)
    assert resp.json()["prompt"] == "Pick the even numbers"

    resp = await client.patch(f"/admin/choices/{q1['5']}", json={"is_correct": True}, headers=admin_headers)
    assert resp.json()["is_correct"] is True
    resp = await client.patch(f"/admin/choices/{q1['5']}", json={}, headers=admin_headers)
    assert resp.status_code == 400

    resp = await client.delete(f"/admin/choices/{q1['5']}", headers=admin_headers)
    assert resp.json() == {"status": "success"}

    resp = await client.delete(f"/admin/questions/{q1_id}", headers=admin_headers)
    assert resp.status_code == 200
    resp = await client.get(f"/admin/questions/{q1_id}", headers=admin_headers)
    assert resp.status_code == 404


async def test_settings_validation(client, admin_headers):
    assert (await client.get("/settings")).json() == {"num_questions": 10, "randomize": True}

    for bad in (0, 201, "5", 1.5):
        resp = await client.patch("/admin/settings", json={"num_questions": bad}, headers=admin_headers)
        assert resp.status_code == 400, bad

    assert (await client.get("/settings")).json() == {"num_questions": 10, "randomize": True}


def test_app_import_configures_structured_logging():
    from api.main import app  # noqa: F401

    renderer = structlog.get_config()["processors"][-1]
    assert isinstance(renderer, (structlog.dev.ConsoleRenderer, structlog.processors.JSONRenderer))
