"""
HTTP-level tests against the assembled application.

Each test gets its own database file; outbound mail is captured by the
fake email service so candidate links can be read back out of it.
"""

import re
from datetime import timedelta
from unittest.mock import patch

import pytest

from core.utils.datetime import now

TOKEN_PATTERN = re.compile(r"\b(?:SCR|INT|TEST|REG)_[A-Za-z0-9_-]+")

JOB = {
    "title": "Platform Engineer",
    "description": "Run our deployment platform.",
    "requirements": "3+ years experience. Share salary expectations and notice period.",
    "work_type": "remote",
}


def token_in(mail: dict) -> str:
    match = TOKEN_PATTERN.search(mail["body"])
    assert match, mail["subject"]
    return match.group(0)


def create_pair(client, email="meera@acme.io"):
    job = client.post("/api/jobs", json=JOB).json()
    candidate = client.post("/api/candidates", json={"name": "Meera Iyer", "email": email}).json()
    return job, candidate


class TestHealth:

    def test_health(self, app_client):
        response = app_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_request_id_header(self, app_client):
        response = app_client.get("/api/jobs", headers={"x-request-id": "trace-1"})
        assert response.headers["x-request-id"] == "trace-1"


class TestRecruiterEndpoints:
    """CRUD surface status codes."""

    def test_create_and_get_job(self, app_client):
        created = app_client.post("/api/jobs", json=JOB, headers={"x-actor-id": "recruiter-7"})
        assert created.status_code == 201

        job = app_client.get(f"/api/jobs/{created.json()['id']}").json()
        assert job["title"] == "Platform Engineer"
        assert job["screening_criteria"]["min_experience"] == 3
        assert job["application_count"] == 0

    def test_missing_job_is_404(self, app_client):
        response = app_client.get("/api/jobs/999")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_invalid_body_is_400(self, app_client):
        response = app_client.post("/api/candidates", json={"name": "No Email"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_duplicate_candidate_is_409(self, app_client):
        body = {"name": "Meera Iyer", "email": "meera@acme.io"}
        assert app_client.post("/api/candidates", json=body).status_code == 201
        duplicate = app_client.post("/api/candidates", json={**body, "email": "MEERA@acme.io"})
        assert duplicate.status_code == 409

    def test_invalid_status_transition_is_409(self, app_client):
        job, candidate = create_pair(app_client)
        application = app_client.post(
            "/api/applications", json={"candidate_id": candidate["id"], "job_id": job["id"]}
        ).json()

        response = app_client.put(f"/api/applications/{application['id']}", json={"status": "screened"})

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_TRANSITION"

    def test_interview_config_bounds(self, app_client):
        job, _ = create_pair(app_client)
        response = app_client.put(f"/api/interview-configs/{job['id']}", json={"total_questions": 51})
        assert response.status_code == 400


class TestArchive:
    """Archived candidates leave the default listing until restored."""

    def test_archive_and_restore(self, app_client):
        _, candidate = create_pair(app_client)
        path = f"/api/candidates/{candidate['id']}"

        archived = app_client.post(f"{path}/archive")
        assert archived.status_code == 200
        assert archived.json()["archived"] is True
        assert app_client.get("/api/candidates").json()["total"] == 0
        listed = app_client.get("/api/candidates/archived").json()["candidates"]
        assert [c["id"] for c in listed] == [candidate["id"]]

        restored = app_client.post(f"{path}/restore").json()
        assert restored["archived"] is False
        assert restored["archived_at"] is None
        assert app_client.get("/api/candidates").json()["total"] == 1

    def test_unknown_candidate(self, app_client):
        assert app_client.post("/api/candidates/999/archive").status_code == 404


class TestDashboard:

    def test_metrics_count_pipeline(self, app_client):
        job, candidate = create_pair(app_client)
        app_client.post("/api/applications", json={"candidate_id": candidate["id"], "job_id": job["id"]})

        metrics = app_client.get("/api/dashboard/metrics").json()

        assert metrics["total_applications"] == 1
        assert metrics["pipeline"]["applied"] == 1
        assert metrics["funnel"]["applied"] == 1
        assert metrics["funnel"]["screened"] == 0
        assert metrics["interviews_scheduled"] == 0
        assert metrics["active_candidates"] == 1
        assert metrics["avg_time_to_hire_days"] is None

    def test_missing_evaluation_is_404(self, app_client):
        assert app_client.get("/api/evaluations/999").status_code == 404


class TestCandidateLinks:
    """Token-gated pages."""

    @pytest.mark.parametrize("path", [
        "/api/candidate/interview/INT_unknown",
        "/api/screening/verify/SCR_unknown",
        "/api/drive/register/REG_unknown",
        "/api/drive/test/TEST_unknown",
    ])
    def test_unknown_token_is_404(self, app_client, path):
        response = app_client.get(path)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    def test_screening_to_interview(self, app_client):
        job, candidate = create_pair(app_client)
        app_client.put(
            f"/api/interview-configs/{job['id']}",
            json={"total_questions": 2, "custom_questions": ["Why platform work?", "Describe an outage."]},
        )

        sent = app_client.post(
            "/api/candidates/send-screening-email",
            json={"candidate_id": candidate["id"], "job_id": job["id"]},
        )
        assert sent.status_code == 200
        assert sent.json()["status"] == "screening_sent"
        assert sent.json()["notification_sent"] is True

        screening_token = token_in(app_client.email_service.to("meera@acme.io")[-1])
        assert screening_token.startswith("SCR_")
        form = app_client.get(f"/api/screening/verify/{screening_token}").json()
        assert form["job"]["title"] == "Platform Engineer"

        submitted = app_client.post(
            f"/api/screening/submit/{screening_token}",
            json={"years_of_experience": 5, "expected_salary_lpa": 18, "notice_period_days": 30},
        )
        assert submitted.status_code == 200
        assert submitted.json()["qualified"] is True
        assert submitted.json()["status"] == "interview_invited"

        # The link is single-use.
        assert app_client.get(f"/api/screening/verify/{screening_token}").status_code == 404

        invitation = app_client.email_service.to("meera@acme.io")[-1]
        assert invitation["subject"] == "Interview Invitation - Platform Engineer"
        interview_token = token_in(invitation)

        state = app_client.get(f"/api/candidate/interview/{interview_token}").json()
        assert state["current_question"] == "Why platform work?"
        assert state["status"] == "scheduled"

        stale = app_client.post(
            f"/api/candidate/interview/{interview_token}/answer",
            json={"answer": "Because", "question_index": 1},
        )
        assert stale.status_code == 409

        first = app_client.post(
            f"/api/candidate/interview/{interview_token}/answer",
            json={"answer": "I enjoy building tools for other engineers.", "question_index": 0},
        ).json()
        assert first["status"] == "in_progress"
        assert first["current_question_index"] == 1

        early = app_client.post(f"/api/candidate/interview/{interview_token}/complete")
        assert early.status_code == 400

        last = app_client.post(
            f"/api/candidate/interview/{interview_token}/answer",
            json={"answer": "A DNS outage; we rolled back and then added monitoring together."},
        ).json()
        assert last["status"] == "completed"
        evaluation_id = last["evaluation_id"]

        done = app_client.post(f"/api/candidate/interview/{interview_token}/complete").json()
        assert done["evaluation_id"] == evaluation_id

        assert app_client.get(f"/api/candidate/interview/{interview_token}").status_code == 404

    def test_expired_screening_link_is_410(self, app_client):
        job, candidate = create_pair(app_client)
        app_client.post(
            "/api/candidates/send-screening-email",
            json={"candidate_id": candidate["id"], "job_id": job["id"]},
        )
        token = token_in(app_client.email_service.sent[-1])

        later = now() + timedelta(days=30)
        with patch("core.workflow.tokens.now", return_value=later):
            response = app_client.get(f"/api/screening/verify/{token}")

        assert response.status_code == 410


class TestWebhooks:

    @pytest.mark.parametrize("path", ["/webhook/email", "/webhook/brevo"])
    def test_non_object_payload_is_400(self, app_client, path):
        response = app_client.post(path, json=["not", "an", "object"])
        assert response.status_code == 400

    def test_unrelated_email_is_acknowledged(self, app_client):
        response = app_client.post(
            "/webhook/email",
            json={"from": "someone@acme.io", "subject": "Newsletter", "text": "Hello"},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "ignored"

    def test_brevo_screening_reply(self, app_client):
        job, candidate = create_pair(app_client, email="arjun@acme.io")
        app_client.post(
            "/api/candidates/send-screening-email",
            json={"candidate_id": candidate["id"], "job_id": job["id"]},
        )

        response = app_client.post("/webhook/brevo", json={
            "items": [{
                "From": {"Name": "Arjun", "Address": "Arjun@acme.io"},
                "Subject": "Re: Screening Questions - Platform Engineer",
                "RawTextBody": "Yes, I have 5 years experience, current CTC is 8 LPA, available immediately",
            }]
        })

        assert response.status_code == 200
        result = response.json()["results"][0]
        assert result["status"] == "processed"
        assert result["qualified"] is True
        assert app_client.email_service.subjects()[-1] == "Interview Invitation - Platform Engineer"

        replay = app_client.post("/webhook/brevo", json={
            "items": [{
                "From": "arjun@acme.io",
                "Subject": "Re: Screening Questions - Platform Engineer",
                "RawTextBody": "Yes, I have 5 years experience, current CTC is 8 LPA, available immediately",
            }]
        })
        assert replay.json()["results"][0]["reason"] == "no_pending_screening"
