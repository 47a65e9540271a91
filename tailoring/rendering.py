"""
Tailoring app CV rendering

Turns a CV document plus an optional layout strategy into print-ready HTML
with one of four presentation styles. Everything here is a pure function of
its input.
"""
from typing import Dict, List, Optional

from django.template.loader import render_to_string

TEMPLATE_STYLES = ('harvard', 'modern', 'creative', 'minimal')
DEFAULT_STYLE = 'harvard'

DEFAULT_SECTION_ORDER = (
    'education',
    'experience',
    'projects',
    'skills',
    'certifications',
    'publications',
    'awards',
    'volunteer',
)

SECTION_TITLES = {
    'education': 'Education',
    'experience': 'Experience',
    'projects': 'Projects',
    'skills': 'Skills & Interests',
    'languages': 'Languages',
    'certifications': 'Certifications',
    'publications': 'Publications',
    'awards': 'Honors & Awards',
    'volunteer': 'Volunteering',
    'references': 'References',
}

# Styles with a sidebar pull these out of the main column
SIDEBAR_SECTIONS = ('skills', 'languages', 'certifications')
SIDEBAR_STYLES = ('modern',)


def _list(value) -> List:
    return value if isinstance(value, list) else []


def _section(section_id: str, profile: Dict, *, group_languages: bool) -> Optional[Dict]:
    if section_id == 'skills':
        skills = [str(skill) for skill in _list(profile.get('skills'))]
        languages = _list(profile.get('languages')) if group_languages else []
        if not skills and not languages:
            return None
        return {'id': 'skills', 'title': SECTION_TITLES['skills'], 'items': skills, 'languages': languages}

    items = [item for item in _list(profile.get(section_id)) if isinstance(item, dict)]
    if not items:
        return None
    return {'id': section_id, 'title': SECTION_TITLES[section_id], 'items': items}


def resolve_section_order(layout_strategy: Optional[Dict]) -> List[str]:
    """
    Return known section ids in display order.

    The layout's ``sectionOrder`` wins when present; ids are matched
    case-insensitively and unknown or repeated ids are skipped.
    """
    order = None
    if isinstance(layout_strategy, dict):
        order = layout_strategy.get('sectionOrder')
    if not isinstance(order, list):
        order = DEFAULT_SECTION_ORDER

    resolved = []
    for section_id in order:
        key = str(section_id).strip().lower()
        if key in SECTION_TITLES and key not in resolved:
            resolved.append(key)
    return resolved


def build_document(profile: Dict, layout_strategy: Optional[Dict] = None, style: str = DEFAULT_STYLE) -> Dict:
    """
    Build the template context for one CV.

    Returns:
        Dict with ``style``, ``personal``, ``summary`` (empty when hidden),
        ``sections`` for the main column and ``sidebar`` for styles that have one.
    """
    profile = profile if isinstance(profile, dict) else {}
    style = style if style in TEMPLATE_STYLES else DEFAULT_STYLE
    personal = profile.get('personal') if isinstance(profile.get('personal'), dict) else {}

    has_intro = True
    if isinstance(layout_strategy, dict) and layout_strategy.get('hasIntro') is False:
        has_intro = False
    summary = (personal.get('summary') or '') if has_intro else ''

    with_sidebar = style in SIDEBAR_STYLES
    # Without a sidebar, languages render inside the skills block
    group_languages = not with_sidebar

    sections = []
    seen = set()
    for section_id in resolve_section_order(layout_strategy):
        if with_sidebar and section_id in SIDEBAR_SECTIONS:
            continue
        if group_languages and section_id == 'languages':
            section_id = 'skills'
        if section_id in seen:
            continue
        seen.add(section_id)
        section = _section(section_id, profile, group_languages=group_languages)
        if section:
            sections.append(section)

    sidebar = []
    if with_sidebar:
        for section_id in SIDEBAR_SECTIONS:
            section = _section(section_id, profile, group_languages=False)
            if section:
                sidebar.append(section)

    return {
        'style': style,
        'personal': personal,
        'summary': summary,
        'sections': sections,
        'sidebar': sidebar,
    }


def render_cv_html(profile: Dict, layout_strategy: Optional[Dict] = None, style: str = DEFAULT_STYLE) -> str:
    document = build_document(profile, layout_strategy, style)
    return render_to_string(f"tailoring/cv/{document['style']}.html", {'document': document})
