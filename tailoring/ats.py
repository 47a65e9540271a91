"""
Tailoring app ATS scoring

Local, deterministic estimate of how well a CV document would fare in an
applicant tracking system. No AI call is involved.
"""
import re
from typing import Dict, List, Optional

BUCKET_MAX = 20
MAX_SUGGESTIONS = 5
MAX_KEYWORDS = 50

ACTION_VERBS = (
    'led', 'developed', 'created', 'improved', 'managed', 'increased',
    'reduced', 'implemented', 'designed', 'built', 'launched', 'achieved',
)
METRIC_PATTERN = re.compile(r'\d+%|\$\d+|\d+ (users|customers|projects|team|million|billion)', re.IGNORECASE)
NON_WORD_PATTERN = re.compile(r'[^a-z0-9\s]')


def _word_count(text) -> int:
    return len(text.split()) if isinstance(text, str) else 0


def _dicts(items) -> List[Dict]:
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def ats_score_label(score: int) -> str:
    if score >= 80:
        return 'Excellent'
    if score >= 60:
        return 'Good'
    if score >= 40:
        return 'Fair'
    return 'Needs Work'


class ResumeOptimizer:
    """
    Helper class for ATS optimization and resume quality validation.
    """

    @staticmethod
    def calculate_ats_score(profile: Dict, job_description: Optional[str] = None) -> Dict[str, object]:
        """
        Score a CV document out of 100 across five 20-point buckets.

        Returns:
            - score: sum of the buckets
            - breakdown: keywords, formatting, sections, length, contact
            - suggestions: at most five actionable recommendations
        """
        profile = profile if isinstance(profile, dict) else {}
        personal = profile.get('personal') if isinstance(profile.get('personal'), dict) else {}
        experience = _dicts(profile.get('experience'))
        education = _dicts(profile.get('education'))
        projects = _dicts(profile.get('projects'))
        skills = profile.get('skills') if isinstance(profile.get('skills'), list) else []
        suggestions: List[str] = []

        # Contact information
        contact = 0
        contact += 5 if personal.get('fullName') else 0
        contact += 5 if personal.get('email') else 0
        contact += 4 if personal.get('phone') else 0
        contact += 3 if personal.get('location') else 0
        contact += 3 if personal.get('linkedin') else 0
        if not personal.get('email'):
            suggestions.append('Add your email address')
        if not personal.get('phone'):
            suggestions.append('Add your phone number')
        if not personal.get('linkedin'):
            suggestions.append('Add your LinkedIn profile URL')

        # Sections
        sections = 0
        sections += 7 if experience else 0
        sections += 5 if education else 0
        sections += 5 if skills else 0
        sections += 3 if personal.get('summary') else 0
        if not experience:
            suggestions.append('Add at least one work experience')
        if not skills:
            suggestions.append('Add relevant skills to match job requirements')
        if not personal.get('summary'):
            suggestions.append('Write a professional summary (2-3 sentences)')

        # Content length
        length = 0
        summary_words = _word_count(personal.get('summary'))
        if 20 <= summary_words <= 80:
            length += 5
        elif summary_words > 0:
            length += 2
        for entry in experience:
            description_words = _word_count(entry.get('description'))
            if 30 <= description_words <= 150:
                length += 3
            elif description_words > 0:
                length += 1
        length = min(length, BUCKET_MAX)
        if 0 < summary_words < 20:
            suggestions.append('Expand your summary to 20-80 words')

        # Formatting
        formatting = 0
        has_action_verbs = False
        has_metrics = False
        for entry in experience:
            description = str(entry.get('description') or '').lower()
            if any(verb in description for verb in ACTION_VERBS):
                has_action_verbs = True
            if METRIC_PATTERN.search(description):
                has_metrics = True
            if entry.get('startDate') and entry.get('endDate'):
                formatting += 2
        formatting += 5 if has_action_verbs else 0
        formatting += 5 if has_metrics else 0
        formatting = min(formatting, BUCKET_MAX)
        if not has_action_verbs:
            suggestions.append('Use action verbs (led, developed, improved) in experience descriptions')
        if not has_metrics:
            suggestions.append('Add quantifiable achievements (%, $, numbers)')

        # Keywords
        if job_description:
            words = NON_WORD_PATTERN.sub('', job_description.lower()).split()
            unique_words = list(dict.fromkeys(word for word in words if len(word) > 3))
            content = ' '.join(
                [str(personal.get('summary') or '')]
                + [str(skill) for skill in skills]
                + [f"{entry.get('role') or ''} {entry.get('description') or ''}" for entry in experience]
                + [f"{entry.get('name') or ''} {entry.get('description') or ''}" for entry in projects]
            ).lower()
            matched = [word for word in unique_words if word in content]
            considered = min(len(unique_words), MAX_KEYWORDS)
            ratio = len(matched) / considered if considered else 0
            keywords = min(int(ratio * BUCKET_MAX + 0.5), BUCKET_MAX)
            if keywords < 10:
                suggestions.append('Add more keywords from the job description to your profile')
        else:
            keywords = min(len(skills) * 2, BUCKET_MAX)
            if len(skills) < 5:
                suggestions.append('Add more skills (aim for 8-15 relevant skills)')

        score = contact + sections + length + formatting + keywords
        return {
            'score': score,
            'label': ats_score_label(score),
            'breakdown': {
                'keywords': keywords,
                'formatting': formatting,
                'sections': sections,
                'length': length,
                'contact': contact,
            },
            'suggestions': suggestions[:MAX_SUGGESTIONS],
        }
