from unittest.mock import patch

import pytest
import requests
from fastapi.testclient import TestClient

from conftest import UpstreamStub, upstream_response

UPSTREAM = "match_patrol.services.upstream.requests.request"


@pytest.fixture
def test_app():
    from match_patrol.main import app
    return app


@pytest.fixture
def client(test_app):
    return TestClient(test_app)


def live_job(title):
    return {"id": 9, "match_score": 91, "job_details": {"details": {"title": title, "company_name": "Acme"}}}


class TestHealth:

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "OK"
        assert "timestamp" in response.json()

    def test_external_reachable(self, client):
        stub = UpstreamStub({"/health": upstream_response({"status": "up"})})
        with patch(UPSTREAM, side_effect=stub):
            response = client.get("/api/test-external")

        assert response.status_code == 200
        assert response.json() == {"status": "External API reachable", "response": {"status": "up"}}
        assert stub.calls[0]["method"] == "GET"

    def test_external_unreachable(self, client):
        with patch(UPSTREAM, side_effect=requests.ConnectionError("refused")):
            response = client.get("/api/test-external")

        assert response.status_code == 503
        assert response.json()["status"] == "External API unreachable"


class TestMatchResults:
    """Test cases for /api/get-match-results/"""

    def test_missing_user_id_is_rejected_without_upstream_call(self, client):
        with patch(UPSTREAM) as mock_request:
            response = client.post("/api/get-match-results/", json={"offset": 0})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "user_id" in body["message"]
        assert mock_request.call_count == 0

    @pytest.mark.parametrize("user_id", ["", "   ", 123])
    def test_user_id_must_be_non_empty_string(self, client, user_id):
        with patch(UPSTREAM) as mock_request:
            response = client.post("/api/get-match-results/", json={"user_id": user_id})

        assert response.status_code == 400
        mock_request.assert_not_called()

    def test_live_results_pass_through(self, client):
        stub = UpstreamStub({"/get-match-results/": upstream_response({"message": [live_job("ML Engineer")]})})
        with patch(UPSTREAM, side_effect=stub):
            response = client.post("/api/get-match-results/", json={
                "user_id": "janedoe", "offset": "5", "limit": 20, "domain": "  Data Science  ",
            })

        assert response.status_code == 200
        assert response.json() == {"message": [live_job("ML Engineer")], "source": "live"}
        assert stub.calls[0]["json"] == {"user_id": "janedoe", "offset": 5, "limit": 20, "domain": "Data Science"}
        assert stub.calls[0]["timeout"] == 5

    def test_blank_domain_is_not_forwarded(self, client):
        stub = UpstreamStub({"/get-match-results/": upstream_response({"message": []})})
        with patch(UPSTREAM, side_effect=stub):
            client.post("/api/get-match-results/", json={"user_id": "janedoe", "domain": "   "})

        assert stub.calls[0]["json"] == {"user_id": "janedoe", "offset": 0, "limit": 10}

    def test_timeout_serves_full_fallback_set(self, client):
        with patch(UPSTREAM, side_effect=requests.Timeout("timed out")):
            response = client.post("/api/get-match-results/", json={"user_id": "janedoe", "domain": ""})

        assert response.status_code == 200
        body = response.json()
        assert body["source"] == "fallback"
        assert [job["title"] for job in body["message"]] == [
            "Software Engineer", "Frontend Developer", "Data Scientist",
        ]
        assert body["message"][0]["match_result"] == {"overall_match": 85, "skills_match": 90, "experience_match": 80}

    def test_technology_fallback_keeps_engineering_roles(self, client):
        with patch(UPSTREAM, side_effect=requests.Timeout("timed out")):
            response = client.post("/api/get-match-results/", json={"user_id": "janedoe", "domain": "technology"})

        titles = [job["title"] for job in response.json()["message"]]
        assert response.status_code == 200
        assert "Software Engineer" in titles
        assert "Data Scientist" not in titles

    def test_data_fallback_keeps_data_roles(self, client):
        with patch(UPSTREAM, side_effect=requests.Timeout("timed out")):
            response = client.post("/api/get-match-results/", json={"user_id": "janedoe", "domain": "Data"})

        assert [job["title"] for job in response.json()["message"]] == ["Data Scientist"]

    @pytest.mark.parametrize("domain", ["all", "Healthcare"])
    def test_unfiltered_fallback_domains(self, client, domain):
        with patch(UPSTREAM, side_effect=requests.ConnectionError("refused")):
            response = client.post("/api/get-match-results/", json={"user_id": "janedoe", "domain": domain})

        assert len(response.json()["message"]) == 3

    @pytest.mark.parametrize("outcome", [
        upstream_response({"detail": "boom"}, status_code=502),
        upstream_response(ValueError("not json")),
        upstream_response({"message": "not a list"}),
    ])
    def test_bad_upstream_answers_fall_back(self, client, outcome):
        with patch(UPSTREAM, side_effect=UpstreamStub({"/get-match-results/": outcome})):
            response = client.post("/api/get-match-results/", json={"user_id": "janedoe"})

        assert response.status_code == 200
        assert response.json()["source"] == "fallback"

    def test_non_integer_offset_is_rejected(self, client):
        with patch(UPSTREAM) as mock_request:
            response = client.post("/api/get-match-results/", json={"user_id": "janedoe", "offset": "abc"})

        assert response.status_code == 400
        mock_request.assert_not_called()


class TestRecommendedAndStatistics:

    def test_recommended_defaults_and_fallback(self, client):
        stub = UpstreamStub({"/get-recommended-match-results/": requests.Timeout("timed out")})
        with patch(UPSTREAM, side_effect=stub):
            response = client.post("/api/get-recommended-match-results/", json={"user_id": "janedoe"})

        assert response.status_code == 200
        assert stub.calls[0]["json"] == {"user_id": "janedoe", "offset": 0, "limit": 5}
        assert [job["title"] for job in response.json()["message"]] == ["Senior Developer"]

    def test_recommended_fallback_respects_domain(self, client):
        with patch(UPSTREAM, side_effect=requests.Timeout("timed out")):
            response = client.post("/api/get-recommended-match-results/",
                                   json={"user_id": "janedoe", "domain": "data"})

        assert response.json() == {"message": [], "source": "fallback"}

    def test_recommended_missing_user_id(self, client):
        response = client.post("/api/get-recommended-match-results/", json={})
        assert response.status_code == 400

    def test_statistics_live(self, client):
        stats = {"message": {"matched_jobs_count": 2, "recommended_jobs_count": 1,
                             "total_applications": 0, "average_match_score": 64.0}}
        with patch(UPSTREAM, side_effect=UpstreamStub({"/get-match-statistics/": upstream_response(stats)})):
            response = client.post("/api/get-match-statistics/", json={"user_id": "janedoe"})

        assert response.json() == {**stats, "source": "live"}

    def test_statistics_fallback(self, client):
        with patch(UPSTREAM, side_effect=requests.ConnectionError("refused")):
            response = client.post("/api/get-match-statistics/", json={"user_id": "janedoe"})

        assert response.status_code == 200
        assert response.json() == {
            "message": {
                "matched_jobs_count": 15,
                "recommended_jobs_count": 8,
                "total_applications": 3,
                "average_match_score": 78.5,
            },
            "source": "fallback",
        }

    def test_statistics_missing_user_id(self, client):
        with patch(UPSTREAM) as mock_request:
            response = client.post("/api/get-match-statistics/", json={})

        assert response.status_code == 400
        mock_request.assert_not_called()


class TestUserDetail:
    """Test cases for /api/get-user/{displayId}"""

    @pytest.mark.parametrize("message,expected", [
        ({"user_id": "janedoe", "domain": "Fintech"}, ["Fintech"]),
        ({"user_id": "janedoe", "domain": ["AI", "Robotics"]}, ["AI", "Robotics"]),
        ({"user_id": "janedoe", "domains": ["Cloud"]}, ["Cloud"]),
        ({"user_id": "janedoe", "domains": "Cloud"}, ["Cloud"]),
        ({"user_id": "janedoe"}, []),
    ])
    def test_domains_are_normalized(self, client, message, expected):
        stub = UpstreamStub({"/get-user-detail/": upstream_response({"message": message, "status": "ok"})})
        with patch(UPSTREAM, side_effect=stub):
            response = client.get("/api/get-user/janedoe")

        body = response.json()
        assert response.status_code == 200
        assert body["message"]["domains"] == expected
        assert body["source"] == "live"
        assert stub.calls[0]["json"] == {"user_id": "janedoe"}
        assert stub.calls[0]["timeout"] == 10

    def test_fallback_skeleton(self, client):
        with patch(UPSTREAM, side_effect=requests.Timeout("timed out")):
            response = client.get("/api/get-user/janedoe")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "fallback"
        assert body["source"] == "fallback"
        assert body["message"]["email"] == "janedoe@example.com"
        assert body["message"]["domains"] == []

    def test_blank_display_id(self, client):
        with patch(UPSTREAM) as mock_request:
            response = client.get("/api/get-user/%20")

        assert response.status_code == 400
        mock_request.assert_not_called()


class TestUpdateUser:
    """Test cases for /api/update-user"""

    def test_payload_is_coerced_and_forwarded(self, client):
        stub = UpstreamStub({"/update-user/": upstream_response({"message": "updated"})})
        with patch(UPSTREAM, side_effect=stub):
            response = client.post("/api/update-user", json={
                "user_id": "janedoe", "domains": "google.com", "details": ["x"], "links": ["https://g.co"],
            })

        assert response.status_code == 200
        assert response.json() == {"message": "updated"}
        assert stub.calls[0]["json"] == {
            "user_id": "janedoe",
            "industry": "Technology",
            "domains": [],
            "details": {},
            "links": ["https://g.co"],
        }

    def test_missing_user_id(self, client):
        with patch(UPSTREAM) as mock_request:
            response = client.post("/api/update-user", json={"industry": "Finance"})

        assert response.status_code == 400
        mock_request.assert_not_called()

    def test_upstream_failure_surfaces_as_500(self, client):
        with patch(UPSTREAM, side_effect=requests.ConnectionError("refused")):
            response = client.post("/api/update-user", json={"user_id": "janedoe"})

        assert response.status_code == 500
        assert response.json()["message"] == "Failed to update user"


class TestDebugExternalUser:
    """Test cases for /api/debug/external-user/{displayId}"""

    def test_reports_raw_exchange(self, client):
        detail = {"message": {"user_id": "janedoe", "domain": "Fintech"}, "status": "ok"}
        stub = UpstreamStub({"/get-user-detail/": upstream_response(detail)})
        with patch(UPSTREAM, side_effect=stub):
            response = client.get("/api/debug/external-user/janedoe")

        body = response.json()
        assert response.status_code == 200
        assert body["debug"] is True
        assert body["requestMethod"] == "POST"
        assert body["requestUrl"].endswith("/get-user-detail/")
        assert body["requestPayload"] == {"user_id": "janedoe"}
        assert body["responseStatus"] == 200
        assert body["responseData"] == detail
        assert "domains" not in body["responseData"]["message"]
        assert isinstance(body["responseTime"], int)

    def test_upstream_error_status_is_reported_as_500(self, client):
        stub = UpstreamStub({"/get-user-detail/": upstream_response({"detail": "no such user"}, status_code=404)})
        with patch(UPSTREAM, side_effect=stub):
            response = client.get("/api/debug/external-user/janedoe")

        body = response.json()
        assert response.status_code == 500
        assert body["status"] == 404
        assert body["responseData"] == {"detail": "no such user"}

    def test_unreachable_upstream(self, client):
        with patch(UPSTREAM, side_effect=requests.Timeout("timed out")):
            response = client.get("/api/debug/external-user/janedoe")

        body = response.json()
        assert response.status_code == 500
        assert body["debug"] is True
        assert body["code"] == "Timeout"
        assert "timed out" in body["error"]
