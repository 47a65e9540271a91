import copy
import json
from types import SimpleNamespace
from unittest import mock

from django.test import SimpleTestCase, override_settings

from tailoring.exceptions import (
    NOT_CONFIGURED_MESSAGE,
    AIConfigurationError,
    AIQuotaExceeded,
    TailoringPipelineError,
)
from tailoring.providers import OpenAIChatProvider
from tailoring.services import CVTailoringService

from .fakes import ORIGINAL_PROFILE, FakeAIClient, analysis_payload, tailored_profile


class CVTailoringServiceOptionsTests(SimpleTestCase):
    """Unit tests for helpers that do not hit the AI provider."""

    def test_normalize_options_defaults(self) -> None:
        options = CVTailoringService.normalize_options({})
        self.assertEqual(options["mode"], "creative")
        self.assertEqual(options["templateStyle"], "harvard")
        self.assertEqual(options["customInstructions"], "")

    def test_normalize_options_rejects_unknown_values(self) -> None:
        options = CVTailoringService.normalize_options(
            {"mode": "wild", "templateStyle": "baroque", "customInstructions": "  Keep it short  "}
        )
        self.assertEqual(options["mode"], "creative")
        self.assertEqual(options["templateStyle"], "harvard")
        self.assertEqual(options["customInstructions"], "Keep it short")

    def test_truncate_job_description(self) -> None:
        short = "x" * 100
        self.assertEqual(CVTailoringService.truncate_job_description(short), short)

        long = "y" * 9000
        truncated = CVTailoringService.truncate_job_description(long)
        self.assertTrue(truncated.startswith("y" * 8000))
        self.assertTrue(truncated.endswith("[Job description truncated for processing]"))
        self.assertNotIn("y" * 8001, truncated)

    def test_prompt_carries_options_and_profile(self) -> None:
        options = CVTailoringService.normalize_options(
            {"mode": "strict", "customInstructions": "Mention Python", "templateStyle": "modern"}
        )
        prompt = CVTailoringService.build_tailoring_prompt(ORIGINAL_PROFILE, "Build compilers", options)

        self.assertIn("STRICT MODE", prompt)
        self.assertIn("Mention Python", prompt)
        self.assertIn('"modern"', prompt)
        self.assertIn("Grace Hopper", prompt)
        self.assertIn("Build compilers", prompt)
        self.assertNotIn("COPIED", prompt)


class AnalyzeAndTailorTests(SimpleTestCase):
    def test_single_call_when_content_is_tailored(self) -> None:
        client = FakeAIClient(analysis_payload())

        result = CVTailoringService(client=client).analyze_and_tailor(ORIGINAL_PROFILE, "Compiler role")

        self.assertEqual(len(client.calls), 1)
        self.assertEqual(client.calls[0]["temperature"], 0.7)
        self.assertEqual(client.calls[0]["max_tokens"], 8000)
        self.assertTrue(client.calls[0]["json_mode"])
        self.assertEqual(result["matchScore"], 82)
        self.assertEqual(result["jobTitle"], "Compiler Engineer")
        self.assertEqual(result["companyName"], "Navy Labs")
        self.assertEqual(result["tailoredProfile"]["personal"]["title"], "Compiler Engineer")

    def test_strict_mode_uses_low_temperature(self) -> None:
        client = FakeAIClient(analysis_payload())

        CVTailoringService(client=client).analyze_and_tailor(ORIGINAL_PROFILE, "Compiler role", {"mode": "strict"})

        self.assertEqual(client.calls[0]["temperature"], 0.3)

    def test_verbatim_copy_is_retried_exactly_once(self) -> None:
        copied = analysis_payload(profile=copy.deepcopy(ORIGINAL_PROFILE))
        client = FakeAIClient(copied, analysis_payload())

        with self.assertLogs("tailoring.services", level="WARNING"):
            result = CVTailoringService(client=client).analyze_and_tailor(ORIGINAL_PROFILE, "Compiler role")

        self.assertEqual(len(client.calls), 2)
        self.assertEqual(client.calls[1]["temperature"], 0.9)
        self.assertIn("COPIED", client.calls[1]["prompt"])
        self.assertEqual(result["tailoredProfile"]["personal"]["title"], "Compiler Engineer")

    def test_second_copy_is_accepted_without_more_retries(self) -> None:
        copied = analysis_payload(profile=copy.deepcopy(ORIGINAL_PROFILE))
        client = FakeAIClient(copied, copied, analysis_payload())

        with self.assertLogs("tailoring.services", level="WARNING") as logs:
            result = CVTailoringService(client=client).analyze_and_tailor(ORIGINAL_PROFILE, "Compiler role")

        self.assertEqual(len(client.calls), 2)
        self.assertTrue(any("accepting" in line for line in logs.output))
        self.assertEqual(
            result["tailoredProfile"]["personal"]["summary"],
            ORIGINAL_PROFILE["personal"]["summary"],
        )

    def test_invalid_json_is_a_pipeline_error(self) -> None:
        client = FakeAIClient("this is not json")

        with self.assertRaises(TailoringPipelineError) as ctx:
            CVTailoringService(client=client).analyze_and_tailor(ORIGINAL_PROFILE, "Compiler role")

        self.assertTrue(str(ctx.exception).startswith("AI analysis failed:"))

    def test_missing_tailored_profile_is_a_pipeline_error(self) -> None:
        client = FakeAIClient(json.dumps({"matchScore": 50}))

        with self.assertRaises(TailoringPipelineError) as ctx:
            CVTailoringService(client=client).analyze_and_tailor(ORIGINAL_PROFILE, "Compiler role")

        self.assertIn("tailoredProfile", str(ctx.exception))

    def test_empty_response_is_a_pipeline_error(self) -> None:
        client = FakeAIClient("")

        with self.assertRaises(TailoringPipelineError):
            CVTailoringService(client=client).analyze_and_tailor(ORIGINAL_PROFILE, "Compiler role")

    def test_fenced_json_is_accepted(self) -> None:
        client = FakeAIClient("```json\n" + analysis_payload() + "\n```")

        result = CVTailoringService(client=client).analyze_and_tailor(ORIGINAL_PROFILE, "Compiler role")

        self.assertEqual(result["matchScore"], 82)

    def test_provider_quota_error_passes_through(self) -> None:
        client = FakeAIClient(AIQuotaExceeded("quota"))

        with self.assertRaises(AIQuotaExceeded):
            CVTailoringService(client=client).analyze_and_tailor(ORIGINAL_PROFILE, "Compiler role")

    def test_provider_configuration_error_passes_through(self) -> None:
        client = FakeAIClient(AIConfigurationError("bad key"))

        with self.assertRaises(AIConfigurationError) as ctx:
            CVTailoringService(client=client).analyze_and_tailor(ORIGINAL_PROFILE, "Compiler role")

        self.assertEqual(str(ctx.exception), "bad key")


class SanitizeTests(SimpleTestCase):
    def test_contact_fields_always_come_from_original(self) -> None:
        ai_profile = tailored_profile(
            fullName="Admiral Hopper",
            email="fake@example.com",
            phone="000",
            linkedin="linkedin.com/in/other",
            github="github.com/other",
            location="Remote",
        )

        sanitized = CVTailoringService.sanitize_tailored_profile(ai_profile, ORIGINAL_PROFILE)

        personal = sanitized["personal"]
        for field in ("fullName", "email", "phone", "linkedin", "website", "github"):
            self.assertEqual(personal[field], ORIGINAL_PROFILE["personal"][field])
        self.assertEqual(personal["location"], "Arlington, VA")
        self.assertEqual(personal["title"], "Compiler Engineer")

    def test_missing_sections_fall_back_to_original(self) -> None:
        ai_profile = {"personal": {"summary": "New summary for the role that is long enough."}}

        sanitized = CVTailoringService.sanitize_tailored_profile(ai_profile, ORIGINAL_PROFILE)

        self.assertEqual(sanitized["experience"], ORIGINAL_PROFILE["experience"])
        self.assertEqual(sanitized["skills"], ORIGINAL_PROFILE["skills"])
        self.assertEqual(sanitized["personal"]["title"], "Software Engineer")

    def test_every_list_item_gets_an_id(self) -> None:
        ai_profile = tailored_profile()
        ai_profile["projects"] = [{"name": "Nanosecond wire"}]

        sanitized = CVTailoringService.sanitize_tailored_profile(ai_profile, ORIGINAL_PROFILE)

        self.assertTrue(sanitized["projects"][0]["id"])
        self.assertEqual(sanitized["experience"][0]["id"], "exp-1")

    def test_sanitize_analysis_is_idempotent(self) -> None:
        ai_profile = tailored_profile(email="fake@example.com")
        ai_profile["awards"] = [{"title": "Computer Science Man of the Year"}]
        raw = {
            "tailoredProfile": ai_profile,
            "layoutStrategy": "not an object",
            "matchScore": "140",
            "suggestions": "not a list",
        }

        once = CVTailoringService.sanitize_analysis(raw, ORIGINAL_PROFILE)
        twice = CVTailoringService.sanitize_analysis(once, ORIGINAL_PROFILE)

        self.assertEqual(once, twice)
        self.assertEqual(once["matchScore"], 100)
        self.assertEqual(once["suggestions"], [])
        self.assertEqual(
            once["layoutStrategy"],
            {
                "sectionOrder": ["experience", "education", "skills", "projects"],
                "hasIntro": True,
                "reasoning": "Default layout",
            },
        )

    def test_match_score_is_clamped(self) -> None:
        self.assertEqual(CVTailoringService.clamp_match_score(-5), 0)
        self.assertEqual(CVTailoringService.clamp_match_score(150), 100)
        self.assertEqual(CVTailoringService.clamp_match_score("87"), 87)
        self.assertEqual(CVTailoringService.clamp_match_score(None), 0)
        self.assertEqual(CVTailoringService.clamp_match_score("high"), 0)
        self.assertEqual(CVTailoringService.clamp_match_score(float("inf")), 100)
        self.assertEqual(CVTailoringService.clamp_match_score(float("-inf")), 0)
        self.assertEqual(CVTailoringService.clamp_match_score(float("nan")), 0)

    def test_infinite_match_score_from_model_is_clamped(self) -> None:
        client = FakeAIClient(analysis_payload(matchScore=float("inf")))

        result = CVTailoringService(client=client).analyze_and_tailor(ORIGINAL_PROFILE, "Compiler role")

        self.assertEqual(result["matchScore"], 100)

    def test_non_list_skills_become_original_skills(self) -> None:
        ai_profile = tailored_profile()
        ai_profile["skills"] = "COBOL, Compilers"

        sanitized = CVTailoringService.sanitize_tailored_profile(ai_profile, ORIGINAL_PROFILE)

        self.assertEqual(sanitized["skills"], ORIGINAL_PROFILE["skills"])


class DetectUnchangedContentTests(SimpleTestCase):
    def test_tailored_content_passes(self) -> None:
        unchanged, issues = CVTailoringService.detect_unchanged_content(tailored_profile(), ORIGINAL_PROFILE)
        self.assertFalse(unchanged)
        self.assertEqual(issues, [])

    def test_identical_summary_is_unchanged(self) -> None:
        ai_profile = tailored_profile(summary=ORIGINAL_PROFILE["personal"]["summary"])

        unchanged, issues = CVTailoringService.detect_unchanged_content(ai_profile, ORIGINAL_PROFILE)

        self.assertTrue(unchanged)
        self.assertIn("summary_identical", issues)

    def test_short_summary_is_unchanged(self) -> None:
        unchanged, issues = CVTailoringService.detect_unchanged_content(
            tailored_profile(summary="Engineer."), ORIGINAL_PROFILE
        )
        self.assertTrue(unchanged)
        self.assertIn("summary_missing", issues)

    def test_single_copied_field_is_tolerated(self) -> None:
        ai_profile = tailored_profile(title=ORIGINAL_PROFILE["personal"]["title"])

        unchanged, issues = CVTailoringService.detect_unchanged_content(ai_profile, ORIGINAL_PROFILE)

        self.assertFalse(unchanged)
        self.assertEqual(issues, ["title"])

    def test_copied_title_and_description_is_unchanged(self) -> None:
        ai_profile = tailored_profile(title=ORIGINAL_PROFILE["personal"]["title"])
        ai_profile["experience"][0]["description"] = ORIGINAL_PROFILE["experience"][0]["description"]

        unchanged, issues = CVTailoringService.detect_unchanged_content(ai_profile, ORIGINAL_PROFILE)

        self.assertTrue(unchanged)
        self.assertEqual(set(issues), {"title", "experience[0].description"})


class AuxiliaryGenerationTests(SimpleTestCase):
    def test_parse_profile_is_normalized(self) -> None:
        client = FakeAIClient(json.dumps({"personal": {"fullName": "Grace"}, "experience": [{"company": "Navy"}]}))

        profile = CVTailoringService(client=client).parse_profile_from_text("Grace, Navy")

        self.assertEqual(client.calls[0]["temperature"], 0.2)
        self.assertEqual(profile["personal"]["fullName"], "Grace")
        self.assertEqual(profile["personal"]["email"], "")
        self.assertTrue(profile["experience"][0]["id"])
        self.assertEqual(profile["skills"], [])

    def test_parse_profile_failure_message(self) -> None:
        client = FakeAIClient("{broken")

        with self.assertRaises(TailoringPipelineError) as ctx:
            CVTailoringService(client=client).parse_profile_from_text("text")

        self.assertTrue(str(ctx.exception).startswith("Failed to parse profile:"))

    def test_cover_letter_prompt(self) -> None:
        client = FakeAIClient("Dear hiring team...")

        letter = CVTailoringService(client=client).generate_cover_letter(
            ORIGINAL_PROFILE, "z" * 5000, tone="confident", company_name="Navy Labs"
        )

        call = client.calls[0]
        self.assertEqual(letter, "Dear hiring team...")
        self.assertFalse(call.get("json_mode", False))
        self.assertEqual(call["temperature"], 0.7)
        self.assertEqual(call["max_tokens"], 1000)
        self.assertIn("Navy Labs for the position", call["prompt"])
        self.assertIn("assertive", call["prompt"])
        self.assertIn("z" * 2000, call["prompt"])
        self.assertNotIn("z" * 2001, call["prompt"])

    def test_cover_letter_unknown_tone_defaults_to_professional(self) -> None:
        client = FakeAIClient("Letter")

        CVTailoringService(client=client).generate_cover_letter(ORIGINAL_PROFILE, "Role", tone="sarcastic")

        self.assertIn("formal, polished", client.calls[0]["prompt"])

    def test_empty_cover_letter_raises(self) -> None:
        client = FakeAIClient("")

        with self.assertRaises(TailoringPipelineError) as ctx:
            CVTailoringService(client=client).generate_cover_letter(ORIGINAL_PROFILE, "Role")

        self.assertEqual(str(ctx.exception), "No cover letter generated")

    def test_interview_questions_accepts_known_shapes(self) -> None:
        question = {"question": "Why compilers?", "type": "behavioral", "tip": "Be concrete"}
        shapes = [
            [question],
            {"questions": [question]},
            {"data": [question]},
            {"items": [question]},
        ]
        for shape in shapes:
            with self.subTest(shape=shape):
                client = FakeAIClient(json.dumps(shape))
                questions = CVTailoringService(client=client).generate_interview_questions(
                    ORIGINAL_PROFILE, "Role", "all"
                )
                self.assertEqual(questions, [question])
                self.assertIn("behavioral, technical, and situational", client.calls[0]["prompt"])

    def test_interview_questions_parse_failure(self) -> None:
        client = FakeAIClient("not json")

        with self.assertRaises(TailoringPipelineError) as ctx:
            CVTailoringService(client=client).generate_interview_questions(None, "Role", "technical")

        self.assertEqual(str(ctx.exception), "Failed to parse AI response")


class OpenAIChatProviderTests(SimpleTestCase):
    def _completion(self, content):
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])

    def test_json_mode_sets_response_format(self) -> None:
        sdk = mock.Mock()
        sdk.chat.completions.create.return_value = self._completion(' {"ok": true} ')
        provider = OpenAIChatProvider(api_key="sk-test", model="gpt-test", client=sdk)

        text = provider.complete(system="sys", prompt="hi", temperature=0.3, max_tokens=10, json_mode=True)

        self.assertEqual(text, '{"ok": true}')
        kwargs = sdk.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs["model"], "gpt-test")
        self.assertEqual(kwargs["response_format"], {"type": "json_object"})
        self.assertEqual(kwargs["messages"][0], {"role": "system", "content": "sys"})

    def test_text_mode_has_no_response_format(self) -> None:
        sdk = mock.Mock()
        sdk.chat.completions.create.return_value = self._completion("Letter")
        provider = OpenAIChatProvider(api_key="sk-test", client=sdk)

        provider.complete(system="sys", prompt="hi", temperature=0.7, max_tokens=10)

        self.assertNotIn("response_format", sdk.chat.completions.create.call_args.kwargs)

    @override_settings(OPENAI_API_KEY="")
    def test_missing_key_is_a_configuration_error(self) -> None:
        with self.assertRaises(AIConfigurationError) as ctx:
            OpenAIChatProvider()
        self.assertEqual(str(ctx.exception), NOT_CONFIGURED_MESSAGE)

    def test_error_translation(self) -> None:
        def sdk_error(code):
            exc = Exception(f"error {code}")
            exc.code = code
            return exc

        with self.assertLogs("tailoring.providers", level="ERROR"):
            quota = OpenAIChatProvider.translate_error(sdk_error("insufficient_quota"))
            bad_key = OpenAIChatProvider.translate_error(sdk_error("invalid_api_key"))
            other = OpenAIChatProvider.translate_error(sdk_error("server_error"))

        self.assertIsInstance(quota, AIQuotaExceeded)
        self.assertIsInstance(bad_key, AIConfigurationError)
        self.assertEqual(str(bad_key), "Invalid OpenAI API key configured on server.")
        self.assertIs(type(other), TailoringPipelineError)
        self.assertEqual(str(other), "error server_error")
