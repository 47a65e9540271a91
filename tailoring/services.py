"""
Tailoring app services

Core service for AI-powered CV tailoring. This module orchestrates:
- Prompt construction from the master profile, job description and options
- One JSON-mode completion per attempt, with a single retry when the model
  hands the input back without rewriting it
- Sanitization of the model output into the CV document shape
- Cover letter, interview question and profile import generation

The service never persists anything and never touches usage counters;
callers own both.
"""
from __future__ import annotations

import json
import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from profiles.services import (
    CONTACT_FIELDS,
    LIST_SECTIONS,
    normalize_profile,
    with_item_ids,
)

from .exceptions import AIConfigurationError, AIQuotaExceeded, TailoringPipelineError
from .providers import get_ai_client

logger = logging.getLogger(__name__)


TAILORING_SYSTEM_PROMPT = """You are an elite CV/Resume consultant and ATS optimization specialist. You transform candidate profiles into targeted, compelling resumes that maximize interview chances.

Your response MUST be valid JSON with this exact structure:
{
    "tailoredProfile": {
        "personal": {
            "fullName": "Keep original",
            "email": "Keep original",
            "phone": "Keep original",
            "linkedin": "Keep original",
            "website": "Keep original (if any)",
            "github": "Keep original (if any)",
            "location": "Keep original",
            "title": "TAILOR this to match the job title",
            "summary": "WRITE A COMPLETELY NEW 3-5 SENTENCE SUMMARY"
        },
        "experience": [/* experience entries with REWRITTEN descriptions */],
        "education": [/* education entries */],
        "skills": [/* skills reordered by relevance */],
        "projects": [/* projects with enhanced descriptions */],
        "languages": [/* languages */],
        "certifications": [/* certifications */]
    },
    "layoutStrategy": {
        "sectionOrder": ["experience", "education", "skills", ...],
        "hasIntro": true,
        "reasoning": "Brief explanation of why this layout works for this job"
    },
    "matchScore": 0-100,
    "suggestions": ["suggestion1", "suggestion2"],
    "jobTitle": "Exact job title from the job description",
    "companyName": "Company name from the job description"
}

LANGUAGE:
- Detect the language of the job description and write the whole tailoredProfile in that language.
- Personal data (name, email, phone, URLs) stays unchanged.

ACTIVE TAILORING:
1. Summary: a new 3-5 sentence summary that opens with experience and core expertise aligned to the job, highlights the 2-3 most relevant achievements and uses the job's keywords naturally.
2. Experience: rewrite every description with action verbs and metrics where possible, weaving in keywords from the job description. Each description needs 3-6 bullet points or 4-8 lines.
3. Skills: put job-relevant skills first and add transferable skills the candidate evidently has.
4. Projects: emphasize relevant technologies and outcomes.

CONTENT DEPTH:
- Produce a full professional document, never a skeleton.
- Keep every relevant experience from the source profile.

NEVER:
- Copy the profile unchanged.
- Fabricate jobs, companies or degrees.
- Ignore the language of the job description."""

MODE_INSTRUCTIONS = {
    'strict': 'STRICT MODE: Only use facts directly stated in the profile. No inference or embellishment.',
    'creative': 'CREATIVE MODE: You may infer transferable skills and adapt tone, but never fabricate experience.',
}

RETRY_INSTRUCTION = (
    'CRITICAL: Your previous attempt COPIED the original text without transformation. This is wrong. '
    'REWRITE every section in your own words, tailored to the job. Do NOT copy text verbatim from the input profile.'
)

TAILORING_TASK = """=== YOUR TASK ===
1. DETECT the language of the job description above
2. ANALYZE the key requirements, skills and keywords of the job
3. TRANSFORM the candidate's profile into a tailored CV

You MUST write a completely new summary for THIS job. It must mention skills and keywords from the job description and must not open the same way as the original summary.

KEEP UNCHANGED (contact info only): fullName, email, phone, linkedin, website, github

MUST BE REWRITTEN:
- summary: completely new text
- title: tailored to the job title
- experience descriptions: rewritten with job keywords
- skills order: job-relevant skills first

Return ONLY valid JSON."""

PARSE_SYSTEM_PROMPT = 'You are a CV/Resume parser. Extract structured data from text. Return ONLY valid JSON.'

PARSE_PROMPT_TEMPLATE = """Extract structured CV/Resume data from the following text. Return a JSON object with this structure:
{{
    "personal": {{ "fullName": "", "title": "", "email": "", "phone": "", "location": "", "linkedin": "", "website": "", "github": "", "summary": "" }},
    "experience": [{{ "company": "", "role": "", "location": "", "locationType": "", "startDate": "", "endDate": "", "current": false, "description": "", "technologies": [] }}],
    "education": [{{ "institution": "", "degree": "", "location": "", "startDate": "", "endDate": "", "current": false, "gpa": "", "description": "" }}],
    "skills": ["skill1", "skill2"],
    "projects": [],
    "certifications": [],
    "languages": [],
    "volunteer": [],
    "awards": [],
    "publications": []
}}

Extract as much information as possible.

TEXT TO PARSE:
{raw_text}"""

COVER_LETTER_SYSTEM_PROMPT = 'You are an expert cover letter writer with years of HR experience.'

COVER_LETTER_TONES = {
    'professional': 'Write in a formal, polished tone suitable for corporate environments.',
    'enthusiastic': 'Write with energy and genuine excitement about the opportunity.',
    'confident': 'Write with a strong, assertive tone that highlights achievements.',
}

COVER_LETTER_PROMPT_TEMPLATE = """Generate a professional cover letter for the following candidate applying to {company_name} for {job_title}.

CANDIDATE PROFILE:
Name: {full_name}
Current Title: {title}
Summary: {summary}
Key Skills: {skills}
Recent Experience: {recent_role} at {recent_company}

JOB DESCRIPTION:
{job_description}

TONE: {tone}

Write a compelling cover letter that:
1. Opens with a strong hook that shows genuine interest
2. Highlights 2-3 relevant achievements that match the job requirements
3. Shows knowledge of the company and role
4. Closes with a clear call to action
5. Is approximately 300-400 words
6. Does NOT include any salutation or signature placeholders like [Your Name]

Return ONLY the cover letter text, no additional formatting or labels."""

INTERVIEW_SYSTEM_PROMPT = (
    'You are an expert career coach and interview preparation specialist. You MUST return valid JSON.'
)

INTERVIEW_PROMPT_TEMPLATE = """Based on the job description and candidate profile below, generate 8-10 likely interview questions.

JOB DESCRIPTION:
{job_description}

CANDIDATE PROFILE:
Name: {full_name}
Skills: {skills}
Recent Role: {recent_role}

Generate {question_types} questions that interviewers would likely ask.

Return a JSON object with a "questions" key containing an array of objects:
{{
  "questions": [
    {{
      "question": "The interview question",
      "type": "behavioral",
      "tip": "A brief tip on how to answer this question well"
    }}
  ]
}}

Focus on questions relevant to the specific job requirements."""


def _personal(profile) -> Dict[str, Any]:
    if isinstance(profile, dict) and isinstance(profile.get('personal'), dict):
        return profile['personal']
    return {}


def _first_experience(profile) -> Dict[str, Any]:
    experience = profile.get('experience') if isinstance(profile, dict) else None
    if isinstance(experience, list) and experience and isinstance(experience[0], dict):
        return experience[0]
    return {}


def _skills_line(profile, limit: int = 10) -> str:
    skills = profile.get('skills') if isinstance(profile, dict) else None
    if not isinstance(skills, list) or not skills:
        return 'Not specified'
    return ', '.join(str(skill) for skill in skills[:limit])


class CVTailoringService:
    """
    Service for AI-powered CV tailoring on top of a chat completion provider.
    """

    MAX_JOB_DESCRIPTION_LENGTH = 8000
    TRUNCATION_MARKER = '\n\n[Job description truncated for processing]'
    SHORT_JOB_DESCRIPTION_LENGTH = 2000

    MODES = ('strict', 'creative')
    TEMPLATE_STYLES = ('harvard', 'modern', 'creative', 'minimal')
    DEFAULT_OPTIONS = {
        'mode': 'creative',
        'customInstructions': '',
        'templateStyle': 'harvard',
    }

    DEFAULT_SECTION_ORDER = ['experience', 'education', 'skills', 'projects']

    TEMPERATURES = {'strict': 0.3, 'creative': 0.7}
    RETRY_TEMPERATURE = 0.9
    TAILORING_MAX_TOKENS = 8000

    PARSE_TEMPERATURE = 0.2
    PARSE_MAX_TOKENS = 4000

    COVER_LETTER_TEMPERATURE = 0.7
    COVER_LETTER_MAX_TOKENS = 1000

    INTERVIEW_TEMPERATURE = 0.7
    INTERVIEW_MAX_TOKENS = 2000
    ALL_QUESTION_TYPES = 'behavioral, technical, and situational'

    MIN_SUMMARY_LENGTH = 20

    def __init__(self, client=None):
        """
        Initialize the service with an AI provider.

        Args:
            client: Object with a ``complete(system=, prompt=, temperature=,
                max_tokens=, json_mode=)`` method. Defaults to the configured
                process-wide provider.

        Raises:
            AIConfigurationError: If no provider credentials are configured.
        """
        self.client = client if client is not None else get_ai_client()

    # --------------------------------------------------------------------- #
    # Public helpers                                                        #
    # --------------------------------------------------------------------- #

    def analyze_and_tailor(
        self,
        profile: Dict[str, Any],
        job_description: str,
        options: Optional[Dict[str, Any]] = None,
        *,
        is_retry: bool = False,
    ) -> Dict[str, Any]:
        """
        Tailor ``profile`` to ``job_description``.

        Returns:
            Dict with ``tailoredProfile``, ``layoutStrategy``, ``matchScore``,
            ``suggestions``, ``jobTitle`` and ``companyName``.

        Raises:
            AIQuotaExceeded: The provider account is out of quota.
            AIConfigurationError: The provider rejected the credentials.
            TailoringPipelineError: Any other provider or response failure.
        """
        options = self.normalize_options(options or {})
        prompt = self.build_tailoring_prompt(profile, job_description, options, is_retry=is_retry)
        temperature = self.RETRY_TEMPERATURE if is_retry else self.TEMPERATURES[options['mode']]

        result = self._request_analysis(prompt, temperature)

        unchanged, issues = self.detect_unchanged_content(result['tailoredProfile'], profile)
        if unchanged:
            if not is_retry:
                logger.warning('AI returned unchanged content (%s), retrying once', ', '.join(issues))
                return self.analyze_and_tailor(profile, job_description, options, is_retry=True)
            logger.error('AI retry still returned unchanged content (%s), accepting it', ', '.join(issues))

        return self.sanitize_analysis(result, profile)

    def parse_profile_from_text(self, raw_text: str) -> Dict[str, Any]:
        """
        Extract a CV document from free text such as a PDF or LinkedIn export.
        """
        try:
            raw = self.client.complete(
                system=PARSE_SYSTEM_PROMPT,
                prompt=PARSE_PROMPT_TEMPLATE.format(raw_text=raw_text),
                temperature=self.PARSE_TEMPERATURE,
                max_tokens=self.PARSE_MAX_TOKENS,
                json_mode=True,
            )
            parsed = self._parse_json(raw)
        except (AIQuotaExceeded, AIConfigurationError):
            raise
        except TailoringPipelineError as exc:
            logger.error('Profile parsing failed: %s', exc)
            raise TailoringPipelineError(f'Failed to parse profile: {exc}') from exc

        return normalize_profile(parsed)

    def generate_cover_letter(
        self,
        profile: Dict[str, Any],
        job_description: str,
        *,
        tone: Optional[str] = None,
        company_name: Optional[str] = None,
        job_title: Optional[str] = None,
    ) -> str:
        tone = tone if tone in COVER_LETTER_TONES else 'professional'
        personal = _personal(profile)
        recent = _first_experience(profile)

        prompt = COVER_LETTER_PROMPT_TEMPLATE.format(
            company_name=company_name or '[Company]',
            job_title=job_title or 'the position',
            full_name=personal.get('fullName') or 'Candidate',
            title=personal.get('title') or '',
            summary=personal.get('summary') or '',
            skills=_skills_line(profile),
            recent_role=recent.get('role') or '',
            recent_company=recent.get('company') or '',
            job_description=job_description[:self.SHORT_JOB_DESCRIPTION_LENGTH],
            tone=COVER_LETTER_TONES[tone],
        )

        cover_letter = self.client.complete(
            system=COVER_LETTER_SYSTEM_PROMPT,
            prompt=prompt,
            temperature=self.COVER_LETTER_TEMPERATURE,
            max_tokens=self.COVER_LETTER_MAX_TOKENS,
        )
        if not cover_letter:
            raise TailoringPipelineError('No cover letter generated')
        return cover_letter

    def generate_interview_questions(
        self,
        profile: Optional[Dict[str, Any]],
        job_description: str,
        question_type: Optional[str] = 'all',
    ) -> List[Any]:
        profile = profile or {}
        question_types = (
            self.ALL_QUESTION_TYPES if not question_type or question_type == 'all' else question_type
        )

        prompt = INTERVIEW_PROMPT_TEMPLATE.format(
            job_description=job_description[:self.SHORT_JOB_DESCRIPTION_LENGTH],
            full_name=_personal(profile).get('fullName') or 'Candidate',
            skills=_skills_line(profile),
            recent_role=_first_experience(profile).get('role') or 'Not specified',
            question_types=question_types,
        )

        raw = self.client.complete(
            system=INTERVIEW_SYSTEM_PROMPT,
            prompt=prompt,
            temperature=self.INTERVIEW_TEMPERATURE,
            max_tokens=self.INTERVIEW_MAX_TOKENS,
            json_mode=True,
        )
        try:
            parsed = json.loads(raw or '{}')
        except json.JSONDecodeError as exc:
            logger.error('Failed to parse interview questions: %s', exc)
            raise TailoringPipelineError('Failed to parse AI response') from exc

        return self.extract_question_list(parsed)

    @classmethod
    def normalize_options(cls, options: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge caller options with defaults and drop unknown values.
        """
        merged = {**cls.DEFAULT_OPTIONS, **{k: v for k, v in options.items() if v not in (None, '')}}
        if merged['mode'] not in cls.MODES:
            merged['mode'] = cls.DEFAULT_OPTIONS['mode']
        if merged['templateStyle'] not in cls.TEMPLATE_STYLES:
            merged['templateStyle'] = cls.DEFAULT_OPTIONS['templateStyle']
        merged['customInstructions'] = str(merged.get('customInstructions') or '').strip()
        return merged

    # --------------------------------------------------------------------- #
    # Prompt construction                                                   #
    # --------------------------------------------------------------------- #

    @classmethod
    def truncate_job_description(cls, job_description: str) -> str:
        if len(job_description) <= cls.MAX_JOB_DESCRIPTION_LENGTH:
            return job_description
        return job_description[:cls.MAX_JOB_DESCRIPTION_LENGTH] + cls.TRUNCATION_MARKER

    @classmethod
    def build_tailoring_prompt(
        cls,
        profile: Dict[str, Any],
        job_description: str,
        options: Dict[str, Any],
        *,
        is_retry: bool = False,
    ) -> str:
        header = [MODE_INSTRUCTIONS[options['mode']]]
        if options.get('customInstructions'):
            header.append(f"ADDITIONAL USER INSTRUCTIONS: {options['customInstructions']}")
        if options.get('templateStyle'):
            header.append(
                f'TEMPLATE STYLE: User prefers "{options["templateStyle"]}" style. '
                'Adjust section order and content density accordingly.'
            )
        if is_retry:
            header.append(RETRY_INSTRUCTION)

        return '\n\n'.join([
            '\n\n'.join(header),
            "=== CANDIDATE'S MASTER PROFILE (SOURCE DATA) ===\n"
            + json.dumps(profile, indent=2, ensure_ascii=False),
            '=== TARGET JOB DESCRIPTION ===\n' + cls.truncate_job_description(job_description),
            TAILORING_TASK,
        ])

    # --------------------------------------------------------------------- #
    # Response handling                                                     #
    # --------------------------------------------------------------------- #

    def _request_analysis(self, prompt: str, temperature: float) -> Dict[str, Any]:
        try:
            raw = self.client.complete(
                system=TAILORING_SYSTEM_PROMPT,
                prompt=prompt,
                temperature=temperature,
                max_tokens=self.TAILORING_MAX_TOKENS,
                json_mode=True,
            )
            if not raw:
                raise TailoringPipelineError('No response from AI provider')
            result = self._parse_json(raw)
            if not isinstance(result, dict) or not isinstance(result.get('tailoredProfile'), dict):
                raise TailoringPipelineError('Invalid response structure from AI: missing tailoredProfile')
        except (AIQuotaExceeded, AIConfigurationError):
            raise
        except TailoringPipelineError as exc:
            logger.error('AI analysis failed: %s', exc)
            raise TailoringPipelineError(f'AI analysis failed: {exc}') from exc
        return result

    @staticmethod
    def _parse_json(raw: str) -> Any:
        payload = (raw or '').strip()
        # Some providers wrap JSON mode output in markdown fences
        if payload.startswith('```json'):
            payload = payload[7:]
        elif payload.startswith('```'):
            payload = payload[3:]
        if payload.endswith('```'):
            payload = payload[:-3]
        payload = payload.strip()
        if not payload:
            raise TailoringPipelineError('No response from AI provider')

        try:
            return json.loads(payload)
        except json.JSONDecodeError as exc:
            logger.error(
                'JSON decode error at line %s col %s: %s. Payload preview: %s',
                exc.lineno, exc.colno, exc.msg, payload[:500],
            )
            raise TailoringPipelineError(f'Invalid JSON from AI provider: {exc.msg}') from exc

    @staticmethod
    def extract_question_list(parsed: Any) -> List[Any]:
        """Accept a bare list, ``questions``, ``data`` or the first list value."""
        if isinstance(parsed, list):
            return parsed
        if not isinstance(parsed, dict):
            return []
        for key in ('questions', 'data'):
            if isinstance(parsed.get(key), list):
                return parsed[key]
        logger.warning('Unexpected interview prep response shape: %s', list(parsed))
        for value in parsed.values():
            if isinstance(value, list):
                return value
        return []

    @classmethod
    def detect_unchanged_content(
        cls,
        ai_profile: Dict[str, Any],
        original_profile: Dict[str, Any],
    ) -> Tuple[bool, List[str]]:
        """
        Heuristically decide whether the model copied the profile instead of tailoring it.

        A missing or copied summary is enough on its own; otherwise two copied
        fields among title and first experience description are required.

        Returns:
            Tuple of (unchanged, issue labels).
        """
        issues: List[str] = []
        ai_personal = _personal(ai_profile)
        original_personal = _personal(original_profile)

        ai_summary = ai_personal.get('summary')
        original_summary = original_personal.get('summary')
        summary_missing = not isinstance(ai_summary, str) or len(ai_summary) < cls.MIN_SUMMARY_LENGTH
        summary_identical = (
            not summary_missing
            and isinstance(original_summary, str)
            and len(original_summary) > cls.MIN_SUMMARY_LENGTH
            and ai_summary == original_summary
        )
        if summary_missing:
            issues.append('summary_missing')
        elif summary_identical:
            issues.append('summary_identical')

        ai_description = _first_experience(ai_profile).get('description')
        original_description = _first_experience(original_profile).get('description')
        if ai_description and original_description and ai_description == original_description:
            issues.append('experience[0].description')

        original_title = original_personal.get('title')
        if original_title and ai_personal.get('title') == original_title:
            issues.append('title')

        return summary_missing or summary_identical or len(issues) >= 2, issues

    @staticmethod
    def sanitize_tailored_profile(ai_profile: Any, original_profile: Dict[str, Any]) -> Dict[str, Any]:
        """
        Fit the model's profile into the CV document shape.

        Contact fields always come from the original profile. Title and summary
        prefer the model's version, location prefers the original. List
        sections the model omitted fall back to the original. Every list
        entry carries an id. Applying this to its own output changes nothing.
        """
        ai_profile = ai_profile if isinstance(ai_profile, dict) else {}
        ai_personal = _personal(ai_profile)
        original_personal = _personal(original_profile)

        personal = {field: original_personal.get(field) or '' for field in CONTACT_FIELDS}
        personal['medium'] = original_personal.get('medium') or ''
        personal['location'] = original_personal.get('location') or ai_personal.get('location') or ''
        personal['title'] = ai_personal.get('title') or original_personal.get('title') or ''
        personal['summary'] = ai_personal.get('summary') or original_personal.get('summary') or ''

        tailored: Dict[str, Any] = {'personal': personal}
        for section in LIST_SECTIONS:
            items = ai_profile.get(section)
            if not isinstance(items, list):
                items = original_profile.get(section)
            tailored[section] = with_item_ids(items)

        skills = ai_profile.get('skills')
        if not isinstance(skills, list):
            skills = original_profile.get('skills')
        tailored['skills'] = skills if isinstance(skills, list) else []
        return tailored

    @classmethod
    def sanitize_layout_strategy(cls, layout: Any) -> Dict[str, Any]:
        if not isinstance(layout, dict):
            return {
                'sectionOrder': list(cls.DEFAULT_SECTION_ORDER),
                'hasIntro': True,
                'reasoning': 'Default layout',
            }
        section_order = layout.get('sectionOrder')
        if not isinstance(section_order, list):
            section_order = list(cls.DEFAULT_SECTION_ORDER)
        has_intro = layout.get('hasIntro')
        reasoning = layout.get('reasoning')
        return {
            'sectionOrder': [str(section) for section in section_order],
            'hasIntro': has_intro if isinstance(has_intro, bool) else True,
            'reasoning': reasoning if isinstance(reasoning, str) else '',
        }

    @staticmethod
    def clamp_match_score(value: Any) -> int:
        try:
            score = float(value)
        except (TypeError, ValueError):
            return 0
        if math.isnan(score):
            return 0
        # Infinity from the model clamps like any other out-of-range number
        return int(round(max(0.0, min(100.0, score))))

    @classmethod
    def sanitize_analysis(cls, result: Dict[str, Any], original_profile: Dict[str, Any]) -> Dict[str, Any]:
        """
        Normalize a full analysis response. Idempotent for a fixed original profile.
        """
        suggestions = result.get('suggestions')
        if not isinstance(suggestions, list):
            suggestions = []

        return {
            'tailoredProfile': cls.sanitize_tailored_profile(result.get('tailoredProfile'), original_profile),
            'layoutStrategy': cls.sanitize_layout_strategy(result.get('layoutStrategy')),
            'matchScore': cls.clamp_match_score(result.get('matchScore')),
            'suggestions': [str(item) for item in suggestions if item not in (None, '')],
            'jobTitle': str(result.get('jobTitle') or ''),
            'companyName': str(result.get('companyName') or ''),
        }
