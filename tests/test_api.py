from linguaprep.infrastructure.db.models import QuestionModel


def _start(client, auth, test_id):
    response = client.post(f"/mock-tests/{test_id}/start", headers=auth)
    assert response.status_code == 201
    return response.json()


def _answers(questions, correct):
    return [
        {"question_id": q["id"], "selected_option": "a" if i < correct else "b"}
        for i, q in enumerate(questions)
    ]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_missing_token_is_401(client, seed_test):
    test_id = seed_test()
    response = client.post(f"/mock-tests/{test_id}/start")
    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "authentication_required"


def test_start_and_submit_passing_attempt(client, auth, seed_test):
    started = _start(client, auth, seed_test(n_questions=5, passing_score=60))
    assert started["test"]["passing_score"] == 60.0
    assert all("correct_answer" not in q for q in started["questions"])

    response = client.post(
        f"/mock-tests/attempts/{started['attempt_id']}/submit",
        json={"answers": _answers(started["questions"], 3), "time_spent": 300},
        headers=auth,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["score"] == 60.0
    assert body["correct_answers"] == 3
    assert body["total_questions"] == 5
    assert body["passed"] is True
    assert len(body["results"]) == 5


def test_failing_attempt(client, auth, seed_test):
    started = _start(client, auth, seed_test(n_questions=5, passing_score=60))
    body = client.post(
        f"/mock-tests/attempts/{started['attempt_id']}/submit",
        json={"answers": _answers(started["questions"], 2), "time_spent": 10},
        headers=auth,
    ).json()
    assert body["score"] == 40.0
    assert body["passed"] is False


def test_badly_shaped_answer_is_graded_invalid_not_rejected(client, auth, seed_test):
    started = _start(client, auth, seed_test(n_questions=2))
    qs = started["questions"]
    answers = [
        {"question_id": qs[0]["id"], "selected_option": {"nested": "junk"}, "matches": ["x"]},
        {"question_id": qs[1]["id"], "selected_option": "a"},
        {"question_id": "not-a-number", "selected_option": "a"},
        {"selected_option": "a"},
    ]
    response = client.post(
        f"/mock-tests/attempts/{started['attempt_id']}/submit",
        json={"answers": answers, "time_spent": 5},
        headers=auth,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["score"] == 50.0
    assert body["invalid"] == 1
    assert body["unanswered"] == 0
    assert [r["status"] for r in body["results"]] == ["invalid", "graded"]


def test_practice_grade_with_bad_value_still_grades_the_rest(client, auth, seed_practice_pool):
    draw = client.get("/practice/questions", params={"language": "english"}, headers=auth).json()
    qs = draw["questions"]
    answers = [{"question_id": qs[0]["id"], "value": {"maybe": True}}]
    answers += [{"question_id": q["id"], "value": True} for q in qs[1:]]

    response = client.post("/practice/grade", json={"answers": answers}, headers=auth)
    assert response.status_code == 200
    body = response.json()
    assert body["correct_answers"] == 3
    assert body["invalid"] == 1
    assert body["percentage"] == 75.0


def test_double_submit_is_409(client, auth, seed_test):
    started = _start(client, auth, seed_test(n_questions=2))
    url = f"/mock-tests/attempts/{started['attempt_id']}/submit"
    payload = {"answers": _answers(started["questions"], 2), "time_spent": 10}

    assert client.post(url, json=payload, headers=auth).status_code == 200
    second = client.post(url, json=payload, headers=auth)
    assert second.status_code == 409
    assert second.json()["detail"]["error"] == "already_completed"


def test_other_users_attempt_is_403(client, auth, seed_test):
    started = _start(client, auth, seed_test())
    response = client.post(
        f"/mock-tests/attempts/{started['attempt_id']}/submit",
        json={"answers": [], "time_spent": 0},
        headers={"Authorization": "Bearer someone-else"},
    )
    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "ownership_violation"


def test_unknown_test_is_404(client, auth):
    response = client.post("/mock-tests/9999/start", headers=auth)
    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "not_found"


def test_negative_time_spent_is_rejected(client, auth, seed_test):
    started = _start(client, auth, seed_test())
    response = client.post(
        f"/mock-tests/attempts/{started['attempt_id']}/submit",
        json={"answers": [], "time_spent": -1},
        headers=auth,
    )
    assert response.status_code == 422


def test_attempt_detail_and_results(client, auth, seed_test):
    started = _start(client, auth, seed_test(n_questions=4, shuffle_questions=True, shuffle_options=True))
    attempt_id = started["attempt_id"]

    detail = client.get(f"/mock-tests/attempts/{attempt_id}", headers=auth).json()
    assert detail["status"] == "OPEN"
    assert [q["id"] for q in detail["questions"]] == [q["id"] for q in started["questions"]]

    client.post(
        f"/mock-tests/attempts/{attempt_id}/submit",
        json={"answers": _answers(started["questions"], 4), "time_spent": 60},
        headers=auth,
    )
    detail = client.get(f"/mock-tests/attempts/{attempt_id}", headers=auth).json()
    assert detail["status"] == "COMPLETED"
    assert detail["score"] == 100.0

    results = client.get("/mock-tests/results", params={"page": 1, "limit": 10}, headers=auth).json()
    assert results["pagination"]["total"] == 1
    assert results["data"][0]["attempt_id"] == attempt_id


def test_practice_draw(client, auth, seed_practice_pool):
    response = client.get("/practice/questions", params={"language": "japanese", "limit": 5}, headers=auth)
    assert response.status_code == 200
    body = response.json()
    assert body["available_count"] == 3
    assert len(body["questions"]) == 3
    assert body["filters"] == {"language": "japanese"}


def test_practice_without_filters_is_400(client, auth, seed_practice_pool):
    response = client.get("/practice/questions", headers=auth)
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "invalid_filter"


def test_practice_limit_above_maximum_is_400(client, auth, seed_practice_pool):
    response = client.get("/practice/questions", params={"language": "japanese", "limit": 1000}, headers=auth)
    assert response.status_code == 400


def test_practice_no_matches_is_404(client, auth, seed_practice_pool):
    response = client.get("/practice/questions", params={"difficulty": "expert"}, headers=auth)
    assert response.status_code == 404


def test_practice_grade(client, auth, seed_practice_pool):
    draw = client.get("/practice/questions", params={"language": "english"}, headers=auth).json()
    answers = [{"question_id": q["id"], "value": True} for q in draw["questions"]]

    response = client.post("/practice/grade", json={"answers": answers}, headers=auth)
    assert response.status_code == 200
    body = response.json()
    assert body["percentage"] == 100.0
    assert body["correct_answers"] == 4
    assert body["passed"] is None


def test_practice_grade_requires_answers(client, auth):
    response = client.post("/practice/grade", json={"answers": []}, headers=auth)
    assert response.status_code == 422


def test_option_with_null_text_is_served_as_empty(client, auth, seed_test, db_session):
    test_id = seed_test(n_questions=1)
    db_session.query(QuestionModel).filter(QuestionModel.test_id == test_id).update(
        {"options": [{"id": "a", "text": None, "is_correct": True}, {"id": "b", "text": "Osaka"}]}
    )
    db_session.commit()

    started = _start(client, auth, test_id)
    assert started["questions"][0]["options"] == [{"id": "a", "text": ""}, {"id": "b", "text": "Osaka"}]
