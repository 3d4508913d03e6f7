"""API tests for ideation, analytics, the AI assistant and authentication."""

from app.domain.exceptions import LLMException, LLMRateLimitException

L2_SCORES = {"novelty": 4, "feasibility": 4, "alignment": 4, "impact": 4}


def create_idea(client, auth_headers, title="Invoice OCR"):
    response = client.post(
        "/api/v1/ideas/",
        json={"title": title, "category": "Cost Reduction"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    return response.json()


class TestIdeas:
    def test_screening_flow(self, client, auth_headers, test_user_id):
        """An idea passes L2 screening and the review lands in its history."""
        idea = create_idea(client, auth_headers)
        assert idea["evaluation_stage"] == "L1"

        screened = client.post(
            f"/api/v1/ideas/{idea['id']}/l2", json=L2_SCORES, headers=auth_headers
        )
        assert screened.status_code == 200
        assert screened.json()["evaluation_stage"] == "L2"
        assert screened.json()["stage_status"] == "approved"

        detail = client.get(f"/api/v1/ideas/{idea['id']}", headers=auth_headers)
        body = detail.json()
        assert body["reviews"][0]["reviewer_name"] == test_user_id
        assert len(body["history"]) == 2

    def test_l3_requires_screening(self, client, auth_headers):
        idea = create_idea(client, auth_headers)

        response = client.post(
            f"/api/v1/ideas/{idea['id']}/l3",
            json={"estimated_cost": 10, "expected_savings": 20},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "stage_transition_error"

    def test_scores_are_range_checked(self, client, auth_headers):
        idea = create_idea(client, auth_headers)

        response = client.post(
            f"/api/v1/ideas/{idea['id']}/l2",
            json={**L2_SCORES, "impact": 9},
            headers=auth_headers,
        )

        assert response.status_code == 422

    def test_import_csv(self, client, auth_headers):
        data = b"Title,Category\nInvoice OCR,Automation\n,Quality\n"

        response = client.post(
            "/api/v1/ideas/import",
            files={"file": ("ideas.csv", data, "text/csv")},
            headers=auth_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert (body["imported"], body["skipped"]) == (1, 1)

        stats = client.get("/api/v1/ideas/statistics", headers=auth_headers).json()
        assert stats[0]["stage"] == "L1"
        assert stats[0]["total"] == 1

    def test_import_rejects_corrupt_workbook(self, client, auth_headers):
        response = client.post(
            "/api/v1/ideas/import",
            files={"file": ("ideas.xlsx", b"not a workbook")},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "import_format_error"

    def test_comment_thread(self, client, auth_headers):
        idea = create_idea(client, auth_headers)
        url = f"/api/v1/ideas/{idea['id']}/comments"

        first = client.post(
            url, json={"author_name": "Ana", "content": "Worth a pilot"}, headers=auth_headers
        )
        assert first.status_code == 201
        reply = client.post(
            url,
            json={
                "author_name": "Raj",
                "content": "Agreed",
                "parent_comment_id": first.json()["id"],
            },
            headers=auth_headers,
        )
        assert reply.status_code == 201

        thread = client.get(url, headers=auth_headers).json()
        assert [c["content"] for c in thread] == ["Worth a pilot", "Agreed"]
        detail = client.get(f"/api/v1/ideas/{idea['id']}", headers=auth_headers).json()
        assert len(detail["comments"]) == 2

    def test_blank_comment_is_rejected(self, client, auth_headers):
        idea = create_idea(client, auth_headers)

        response = client.post(
            f"/api/v1/ideas/{idea['id']}/comments",
            json={"author_name": "Ana", "content": "   "},
            headers=auth_headers,
        )

        assert response.status_code == 422


class TestAnalytics:
    def test_empty_portfolio(self, client, auth_headers):
        response = client.get("/api/v1/analytics/portfolio", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["metrics"]["total_projects"] == 0
        assert body["overdue_tasks"] == 0

    def test_performance_overview(self, client, auth_headers, project_payload):
        client.post("/api/v1/projects/", json=project_payload, headers=auth_headers)

        response = client.get("/api/v1/analytics/performance", headers=auth_headers)

        assert [p["name"] for p in response.json()] == ["ERP Rollout"]

    def test_metrics_history(self, client, auth_headers, project_payload):
        project = client.post(
            "/api/v1/projects/", json=project_payload, headers=auth_headers
        ).json()
        url = f"/api/v1/analytics/projects/{project['id']}/metrics-history"

        for day in ("2025-06-01", "2025-06-08"):
            recorded = client.post(
                url,
                json={"snapshot_date": day, "resource_utilization": 75},
                headers=auth_headers,
            )
            assert recorded.status_code == 201

        history = client.get(url, params={"limit": 1}, headers=auth_headers)
        assert history.status_code == 200
        assert [s["snapshot_date"] for s in history.json()] == ["2025-06-08"]

    def test_metrics_history_limit_is_validated(
        self, client, auth_headers, project_payload
    ):
        project = client.post(
            "/api/v1/projects/", json=project_payload, headers=auth_headers
        ).json()

        response = client.get(
            f"/api/v1/analytics/projects/{project['id']}/metrics-history",
            params={"limit": 0},
            headers=auth_headers,
        )

        assert response.status_code == 422


class TestAssistant:
    def test_chat(self, client, auth_headers, mock_llm_client):
        response = client.post(
            "/api/v1/ai/chat",
            json={
                "message": "How are we doing?",
                "history": [{"role": "user", "content": "Hi"}],
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json() == {
            "response": "All projects are on track.",
            "error": None,
        }
        mock_llm_client.chat.assert_awaited_once()

    def test_chat_fallback(self, client, auth_headers, mock_llm_client):
        """Gateway failures still answer with a friendly message."""
        mock_llm_client.chat.side_effect = LLMException("gateway down")

        response = client.post(
            "/api/v1/ai/chat", json={"message": "Status?"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["error"] == "gateway down"
        assert response.json()["response"]

    def test_rate_limit_maps_to_429(self, client, auth_headers, mock_llm_client):
        mock_llm_client.prioritize_tasks.side_effect = LLMRateLimitException()

        response = client.post(
            "/api/v1/ai/prioritize-tasks", json={}, headers=auth_headers
        )

        assert response.status_code == 429
        assert response.json()["error"] == "rate_limited"

    def test_forecast_unknown_project(self, client, auth_headers):
        response = client.post(
            "/api/v1/ai/forecast-risks",
            json={"project_id": "00000000-0000-0000-0000-000000000000"},
            headers=auth_headers,
        )

        assert response.status_code == 404

    def test_insights_listing(self, client, auth_headers):
        response = client.get(
            "/api/v1/ai/insights", params={"status": "new"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json() == {"insights": []}

    def test_insights_status_filter_is_validated(self, client, auth_headers):
        response = client.get(
            "/api/v1/ai/insights", params={"status": "bogus"}, headers=auth_headers
        )

        assert response.status_code == 422


class TestAuth:
    def test_register_and_login(self, client):
        """A registered user can log in and use the token."""
        registered = client.post(
            "/api/v1/auth/register",
            json={
                "email": "Dana@Example.com",
                "password": "correct-horse",
                "full_name": "Dana",
            },
        )
        assert registered.status_code == 201
        assert registered.json()["email"] == "dana@example.com"
        assert "hashed_password" not in registered.json()

        login = client.post(
            "/api/v1/auth/login",
            json={"email": "dana@example.com", "password": "correct-horse"},
        )
        assert login.status_code == 200
        token = login.json()["access_token"]
        assert login.json()["token_type"] == "bearer"

        projects = client.get(
            "/api/v1/projects/", headers={"Authorization": f"Bearer {token}"}
        )
        assert projects.status_code == 200

    def test_duplicate_registration(self, client):
        payload = {"email": "dana@example.com", "password": "correct-horse"}
        client.post("/api/v1/auth/register", json=payload)

        response = client.post("/api/v1/auth/register", json=payload)

        assert response.status_code == 400

    def test_bad_password(self, client):
        client.post(
            "/api/v1/auth/register",
            json={"email": "dana@example.com", "password": "correct-horse"},
        )

        response = client.post(
            "/api/v1/auth/login",
            json={"email": "dana@example.com", "password": "wrong-password"},
        )

        assert response.status_code == 403
        assert response.json()["error"] == "unauthorized"
