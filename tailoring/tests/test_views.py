import copy
import json
from datetime import timedelta
from unittest import mock

from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.models import SubscriptionTier, User
from tailoring.exceptions import NOT_CONFIGURED_MESSAGE, AIConfigurationError, AIQuotaExceeded
from tailoring.models import Application

from .fakes import ORIGINAL_PROFILE, FakeAIClient, analysis_payload


class CVApiTestCase(TestCase):
    tier = SubscriptionTier.STARTER

    def setUp(self) -> None:
        self.user = User.objects.create_user(
            email="grace@example.com",
            password="pw",
            email_verified=True,
            subscription_tier=self.tier,
        )
        self.client = APIClient()
        self.client.force_authenticate(self.user)

    def use_ai(self, fake: FakeAIClient):
        patcher = mock.patch("tailoring.services.get_ai_client", return_value=fake)
        patcher.start()
        self.addCleanup(patcher.stop)
        return fake

    def usage(self) -> int:
        return User.objects.get(pk=self.user.pk).usage_count


class GenerateCVTests(CVApiTestCase):
    def generate(self, **body):
        payload = {"profile": ORIGINAL_PROFILE, "jobDescription": "Compiler engineer wanted"}
        payload.update(body)
        return self.client.post("/api/cv/generate", payload, format="json")

    def test_generate_returns_tailored_cv_and_counts_usage(self) -> None:
        self.use_ai(FakeAIClient(analysis_payload()))

        response = self.generate()

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(
            set(body),
            {"tailoredProfile", "layoutStrategy", "matchScore", "suggestions",
             "originalDescription", "jobTitle", "companyName"},
        )
        self.assertEqual(body["originalDescription"], "Compiler engineer wanted")
        self.assertEqual(body["tailoredProfile"]["personal"]["email"], "grace@example.com")
        self.assertEqual(response["Cache-Control"], "no-store, no-cache, must-revalidate, proxy-revalidate")
        self.assertEqual(response["Pragma"], "no-cache")
        self.assertEqual(response["Expires"], "0")
        self.assertEqual(self.usage(), 1)

    def test_missing_fields(self) -> None:
        response = self.client.post("/api/cv/generate", {"profile": ORIGINAL_PROFILE}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Missing required fields: profile and jobDescription")

    def test_blank_job_description(self) -> None:
        response = self.generate(jobDescription="   ")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Job description cannot be empty")

    def test_profile_without_personal_section(self) -> None:
        response = self.generate(profile={"skills": ["COBOL"]})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.usage(), 0)

    def test_ai_quota_exhaustion_is_503_and_free(self) -> None:
        self.use_ai(FakeAIClient(AIQuotaExceeded("OpenAI API quota exceeded. Please check your billing.")))

        response = self.generate()

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["error"], "AI service temporarily unavailable. Please try again later.")
        self.assertEqual(self.usage(), 0)

    def test_unconfigured_provider_is_500(self) -> None:
        patcher = mock.patch(
            "tailoring.services.get_ai_client",
            side_effect=AIConfigurationError(NOT_CONFIGURED_MESSAGE),
        )
        patcher.start()
        self.addCleanup(patcher.stop)

        response = self.generate()

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error"], NOT_CONFIGURED_MESSAGE)
        self.assertEqual(self.usage(), 0)

    def test_failed_generation_returns_the_slot(self) -> None:
        self.use_ai(FakeAIClient("not json"))

        response = self.generate()

        self.assertEqual(response.status_code, 500)
        self.assertTrue(response.json()["error"].startswith("AI analysis failed:"))
        self.assertEqual(self.usage(), 0)

    def test_requires_authentication(self) -> None:
        response = APIClient().post("/api/cv/generate", {}, format="json")

        self.assertEqual(response.status_code, 401)


class FreeToStarterScenarioTests(CVApiTestCase):
    tier = SubscriptionTier.FREE

    def test_free_is_refused_then_starter_gets_twenty(self) -> None:
        fake = self.use_ai(FakeAIClient(repeat=analysis_payload()))
        body = {"profile": ORIGINAL_PROFILE, "jobDescription": "Compiler engineer wanted"}

        refused = self.client.post("/api/cv/generate", body, format="json")
        self.assertEqual(refused.status_code, 403)
        self.assertEqual(refused.json()["tier"], "FREE")
        self.assertEqual(refused.json()["limit"], 0)
        self.assertEqual(fake.calls, [])

        User.objects.filter(pk=self.user.pk).update(subscription_tier=SubscriptionTier.STARTER)

        for attempt in range(20):
            response = self.client.post("/api/cv/generate", body, format="json")
            self.assertEqual(response.status_code, 200, attempt)

        over = self.client.post("/api/cv/generate", body, format="json")
        self.assertEqual(over.status_code, 403)
        self.assertEqual(over.json()["error"], "Monthly usage limit reached")
        self.assertEqual(over.json()["current"], 20)
        self.assertEqual(over.json()["limit"], 20)
        self.assertEqual(over.json()["upgradeUrl"], "/settings/billing")
        self.assertEqual(self.usage(), 20)
        self.assertEqual(len(fake.calls), 20)


class ParseCVTests(CVApiTestCase):
    def test_parse_returns_profile_without_usage(self) -> None:
        self.use_ai(FakeAIClient(json.dumps({"personal": {"fullName": "Grace Hopper"}, "skills": ["COBOL"]})))

        response = self.client.post("/api/cv/parse", {"rawText": "Grace Hopper. COBOL."}, format="json")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["profile"]["personal"]["fullName"], "Grace Hopper")
        self.assertEqual(response.json()["profile"]["skills"], ["COBOL"])
        self.assertEqual(self.usage(), 0)

    def test_parse_requires_text(self) -> None:
        response = self.client.post("/api/cv/parse", {"rawText": "  "}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "No text content provided for parsing")


class CoverLetterTests(CVApiTestCase):
    def test_letter_is_stored_and_then_served_from_cache(self) -> None:
        fake = self.use_ai(FakeAIClient("I would love to build compilers for you."))
        application = Application.objects.create(user=self.user, job_title="Engineer", company="Navy Labs")
        body = {
            "profile": ORIGINAL_PROFILE,
            "jobDescription": "Compiler engineer wanted",
            "options": {"tone": "enthusiastic", "companyName": "Navy Labs"},
            "applicationId": str(application.pk),
        }

        first = self.client.post("/api/cv/cover-letter", body, format="json")
        second = self.client.post("/api/cv/cover-letter", body, format="json")

        self.assertEqual(first.json(), {"coverLetter": "I would love to build compilers for you."})
        self.assertEqual(
            second.json(),
            {"coverLetter": "I would love to build compilers for you.", "fromCache": True},
        )
        self.assertEqual(len(fake.calls), 1)
        self.assertEqual(self.usage(), 1)
        application.refresh_from_db()
        self.assertEqual(application.cover_letter, "I would love to build compilers for you.")

    def test_other_users_application_is_not_touched(self) -> None:
        self.use_ai(FakeAIClient("Letter"))
        other = User.objects.create_user(email="other@example.com", password="pw")
        application = Application.objects.create(
            user=other, job_title="Engineer", company="Navy Labs", cover_letter="Theirs",
        )

        response = self.client.post(
            "/api/cv/cover-letter",
            {"profile": ORIGINAL_PROFILE, "jobDescription": "Role", "applicationId": str(application.pk)},
            format="json",
        )

        self.assertEqual(response.json(), {"coverLetter": "Letter"})
        application.refresh_from_db()
        self.assertEqual(application.cover_letter, "Theirs")

    def test_requires_profile_and_description(self) -> None:
        response = self.client.post("/api/cv/cover-letter", {"jobDescription": "Role"}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Profile and job description are required")


class InterviewPrepTests(CVApiTestCase):
    QUESTIONS = [{"question": "Tell us about A-0", "type": "technical", "tip": "Explain the impact"}]

    def test_questions_are_stored_and_cached(self) -> None:
        fake = self.use_ai(FakeAIClient(json.dumps({"questions": self.QUESTIONS})))
        application = Application.objects.create(user=self.user, job_title="Engineer", company="Navy Labs")
        body = {
            "profile": ORIGINAL_PROFILE,
            "jobDescription": "Compiler engineer wanted",
            "questionType": "technical",
            "applicationId": str(application.pk),
        }

        first = self.client.post("/api/cv/interview-prep", body, format="json")
        second = self.client.post("/api/cv/interview-prep", body, format="json")

        self.assertEqual(first.json(), {"questions": self.QUESTIONS})
        self.assertEqual(second.json(), {"questions": self.QUESTIONS, "fromCache": True})
        self.assertEqual(len(fake.calls), 1)
        self.assertEqual(self.usage(), 1)

    def test_requires_job_description(self) -> None:
        response = self.client.post("/api/cv/interview-prep", {"profile": ORIGINAL_PROFILE}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Job description is required")


class ApplicationApiTests(CVApiTestCase):
    def create(self, **body):
        payload = {
            "jobTitle": "Compiler Engineer",
            "companyName": "Navy Labs",
            "jobDescription": "Build compilers",
            "tailoredProfile": ORIGINAL_PROFILE,
            "matchScore": 82,
        }
        payload.update(body)
        return self.client.post("/api/cv/applications", payload, format="json")

    def test_create_and_list(self) -> None:
        created = self.create()

        self.assertEqual(created.status_code, 201)
        application_id = created.json()["application"]["id"]
        self.assertTrue(created.json()["application"]["createdAt"])

        listed = self.client.get("/api/cv/applications").json()["applications"]
        self.assertEqual(len(listed), 1)
        entry = listed[0]
        self.assertEqual(entry["id"], application_id)
        self.assertEqual(entry["jobTitle"], "Compiler Engineer")
        self.assertEqual(entry["companyName"], "Navy Labs")
        self.assertEqual(entry["status"], "applied")
        self.assertEqual(entry["jobDescription"], "Build compilers")
        self.assertEqual(entry["tailoredProfile"], ORIGINAL_PROFILE)
        self.assertEqual(entry["matchScore"], 82)
        self.assertIn("dateApplied", entry)
        self.assertIn("lastUpdated", entry)

    def test_create_requires_title_and_company(self) -> None:
        response = self.create(companyName="")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Job title and company name are required")

    def test_list_is_owner_scoped_and_newest_first(self) -> None:
        other = User.objects.create_user(email="other@example.com", password="pw")
        Application.objects.create(user=other, job_title="Theirs", company="Elsewhere")
        first_id = self.create(jobTitle="First").json()["application"]["id"]
        Application.objects.filter(pk=first_id).update(created_at=timezone.now() - timedelta(days=1))
        self.create(jobTitle="Second")

        titles = [app["jobTitle"] for app in self.client.get("/api/cv/applications").json()["applications"]]

        self.assertEqual(titles, ["Second", "First"])

    def test_update_status_is_case_insensitive(self) -> None:
        application_id = self.create().json()["application"]["id"]

        response = self.client.patch(
            f"/api/cv/applications/{application_id}", {"status": "interviewing"}, format="json"
        )

        self.assertEqual(response.json(), {"success": True})
        self.assertEqual(Application.objects.get(pk=application_id).status, Application.Status.INTERVIEWING)

    def test_update_rejects_unknown_status(self) -> None:
        application_id = self.create().json()["application"]["id"]

        response = self.client.patch(f"/api/cv/applications/{application_id}", {"status": "ghosted"}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()["error"],
            "Invalid status. Must be one of: APPLIED, INTERVIEWING, OFFER, REJECTED, ACCEPTED, ARCHIVED",
        )

    def test_foreign_application_is_not_found(self) -> None:
        other = User.objects.create_user(email="other@example.com", password="pw")
        application = Application.objects.create(user=other, job_title="Theirs", company="Elsewhere")

        patch = self.client.patch(f"/api/cv/applications/{application.pk}", {"status": "OFFER"}, format="json")
        delete = self.client.delete(f"/api/cv/applications/{application.pk}")

        self.assertEqual(patch.status_code, 404)
        self.assertEqual(patch.json()["error"], "Application not found")
        self.assertEqual(delete.status_code, 404)
        application.refresh_from_db()
        self.assertEqual(application.status, Application.Status.APPLIED)

    def test_delete(self) -> None:
        application_id = self.create().json()["application"]["id"]

        first = self.client.delete(f"/api/cv/applications/{application_id}")
        second = self.client.delete(f"/api/cv/applications/{application_id}")

        self.assertEqual(first.json(), {"success": True})
        self.assertEqual(second.status_code, 404)

    def test_export_renders_snapshot(self) -> None:
        application_id = self.create().json()["application"]["id"]

        response = self.client.get(f"/api/cv/applications/{application_id}/export?template=minimal")

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response["Content-Type"].startswith("text/html"))
        html = response.content.decode()
        self.assertIn("Grace Hopper", html)
        self.assertIn("cv-minimal", html)


class LocalToolsTests(CVApiTestCase):
    tier = SubscriptionTier.FREE

    def test_ats_score_needs_no_quota(self) -> None:
        response = self.client.post(
            "/api/cv/ats-score",
            {"profile": ORIGINAL_PROFILE, "jobDescription": "Compilers and COBOL"},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(set(body["breakdown"]), {"keywords", "formatting", "sections", "length", "contact"})
        self.assertEqual(body["score"], sum(body["breakdown"].values()))

    def test_render_returns_html(self) -> None:
        profile = copy.deepcopy(ORIGINAL_PROFILE)
        response = self.client.post(
            "/api/cv/render",
            {"profile": profile, "templateStyle": "modern"},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        html = response.content.decode()
        self.assertIn("Grace Hopper", html)
        self.assertIn("cv-sidebar", html)

    def test_render_requires_object_profile(self) -> None:
        response = self.client.post("/api/cv/render", {"profile": "text"}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Profile must be an object")
