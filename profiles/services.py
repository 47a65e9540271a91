"""
Profile Service Layer
Shape helpers for the CV document and persistence of the master profile.
"""
import copy
import uuid
from typing import Dict, List

from .models import MasterProfile

LIST_SECTIONS = (
    'experience',
    'education',
    'languages',
    'projects',
    'certifications',
    'volunteer',
    'awards',
    'publications',
    'references',
)

# Copied from the master profile into every AI result, never generated
CONTACT_FIELDS = ('fullName', 'email', 'phone', 'linkedin', 'website', 'github')

PERSONAL_FIELDS = CONTACT_FIELDS + ('title', 'location', 'medium', 'summary')


def new_item_id() -> str:
    return str(uuid.uuid4())


def _with_id(item):
    if isinstance(item, dict) and not item.get('id'):
        return {**item, 'id': new_item_id()}
    return item


def with_item_ids(items) -> List[Dict]:
    """
    Return the object entries of ``items``, each carrying an ``id``.

    Existing ids are kept, so applying this twice changes nothing.
    """
    if not isinstance(items, list):
        return []
    return [_with_id(item) for item in items if isinstance(item, dict)]


def ensure_item_ids(profile: Dict) -> Dict:
    """
    Give every list-section entry of ``profile`` an id. Returns a new dict.

    Only missing ids are filled in; everything else is stored as sent.
    """
    result = dict(profile)
    for section in LIST_SECTIONS:
        if isinstance(result.get(section), list):
            result[section] = [_with_id(item) for item in result[section]]
    return result


def _string_list(value) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if isinstance(item, (str, int, float)) and str(item).strip()]


def empty_profile() -> Dict:
    profile = {'personal': {field: '' for field in PERSONAL_FIELDS}, 'skills': []}
    for section in LIST_SECTIONS:
        profile[section] = []
    return profile


def normalize_profile(data) -> Dict:
    """
    Coerce loosely structured data (for example an AI import) into a full CV document.

    Missing sections become empty lists, personal fields become strings, list
    entries get ids, and skills become a list of non-empty strings.
    """
    profile = empty_profile()
    if not isinstance(data, dict):
        return profile

    personal = data.get('personal') if isinstance(data.get('personal'), dict) else {}
    for field in PERSONAL_FIELDS:
        value = personal.get(field)
        profile['personal'][field] = str(value).strip() if value is not None else ''

    for section in LIST_SECTIONS:
        profile[section] = with_item_ids(copy.deepcopy(data.get(section)))

    skills = data.get('skills')
    if isinstance(skills, str):
        skills = [part for part in skills.split(',')]
    profile['skills'] = _string_list(skills)
    return profile


def get_profile_data(user):
    """Return the stored document or None when the user never saved one."""
    master = MasterProfile.objects.filter(user=user).only('data').first()
    return master.data if master else None


def save_profile_data(user, profile: Dict) -> Dict:
    """Replace the user's master profile wholesale and return what was stored."""
    data = ensure_item_ids(profile)
    master, _ = MasterProfile.objects.update_or_create(user=user, defaults={'data': data})
    return master.data
