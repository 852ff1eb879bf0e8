"""Static field-name synonym dictionary used by the matcher."""
import json
import re
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from formfill.domain.exceptions import ConfigurationError

# Each key is a canonical name, values are common variations.
DEFAULT_SYNONYMS: Dict[str, List[str]] = {
    "email": ["mail", "e-mail", "contact_email", "email_address", "user_email", "emailaddress", "e_mail"],
    "phone": ["mobile", "tel", "telephone", "contact_no", "phone_number", "cell", "phonenumber",
              "mobile_no", "contact_number", "cellular"],
    "name": ["fullname", "full_name", "username", "user_name", "candidate", "person", "applicant",
             "contactname", "contact_name"],
    "first_name": ["fname", "given_name", "forename", "firstname", "first", "givenname"],
    "last_name": ["lname", "surname", "family_name", "lastname", "last", "familyname"],
    "address": ["street", "location", "addr", "address_line", "street_address", "addressline1",
                "address1", "address_line_1"],
    "address2": ["address_line_2", "addressline2", "apt", "suite", "unit", "apartment"],
    "city": ["town", "municipality", "locality", "cityname"],
    "state": ["province", "region", "state_province", "stateprovince"],
    "zipcode": ["zip", "postal_code", "postcode", "zip_code", "postalcode", "pincode", "pin_code"],
    "country": ["nation", "country_code", "countrycode", "country_name"],
    "company": ["organization", "employer", "firm", "business", "org", "organisation",
                "company_name", "companyname"],
    "title": ["job_title", "jobtitle", "position", "designation", "role"],
    "date": ["dob", "birth_date", "date_of_birth", "birthdate", "dateofbirth"],
    "website": ["url", "web", "homepage", "site", "webpage", "web_url"],
    "comments": ["notes", "remarks", "description", "message", "comment", "feedback", "bio", "about"],
    "gender": ["sex", "male_female"],
    "age": ["years", "years_old"],
    "salary": ["compensation", "pay", "income", "wage"],
    "department": ["dept", "division", "unit", "section"],
    "id": ["employee_id", "emp_id", "staff_id", "identifier", "record_id"],
}

_KEY_SEPARATOR_RE = re.compile(r"[\s\-]+")


def synonym_key(term: Optional[str]) -> str:
    """Lookup key for a term: lowercase, spaces and hyphens become `_`."""
    if not term:
        return ""
    return _KEY_SEPARATOR_RE.sub("_", str(term).strip().lower())


class SynonymTable:
    """Immutable canonical-name <-> variant lookup."""

    def __init__(self, groups: Mapping[str, Iterable[str]]):
        normalized: Dict[str, Tuple[str, ...]] = {}
        reverse: Dict[str, str] = {}
        for canonical, variants in groups.items():
            key = synonym_key(canonical)
            if not key:
                continue
            normalized[key] = tuple(synonym_key(v) for v in variants if synonym_key(v))
        for key, variants in normalized.items():
            for variant in variants:
                # first group listing a variant owns it
                reverse.setdefault(variant, key)
        self._groups = MappingProxyType(normalized)
        self._reverse = MappingProxyType(reverse)

    @classmethod
    def default(cls) -> "SynonymTable":
        return cls(DEFAULT_SYNONYMS)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "SynonymTable":
        """Load a {canonical: [variants]} JSON file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot load synonyms from {path}: {e}")
        if not isinstance(data, dict) or not all(isinstance(v, list) for v in data.values()):
            raise ConfigurationError(f"Synonyms file {path} must map names to lists of variants")
        return cls(data)

    @property
    def groups(self) -> Mapping[str, Tuple[str, ...]]:
        return self._groups

    def __len__(self) -> int:
        return len(self._groups)

    def find_canonical(self, term: Optional[str]) -> Optional[str]:
        """Canonical name for a term, or None."""
        key = synonym_key(term)
        if not key:
            return None
        if key in self._groups:
            return key
        return self._reverse.get(key)

    def are_synonyms(self, term_a: Optional[str], term_b: Optional[str]) -> bool:
        """True when both terms share a canonical group or are the same key."""
        if not term_a or not term_b:
            return False
        canon_a = self.find_canonical(term_a)
        canon_b = self.find_canonical(term_b)
        if canon_a and canon_b and canon_a == canon_b:
            return True
        return synonym_key(term_a) == synonym_key(term_b)

    def synonyms_for(self, term: Optional[str]) -> List[str]:
        """The canonical name followed by all its variants."""
        canonical = self.find_canonical(term)
        if canonical is None:
            return []
        return [canonical, *self._groups[canonical]]
