from bazaar.schemas.listing import Listing
from bazaar.services.trust import trust_badge


def _listing(**overrides):
    data = {"id": "1", "source": "retail", "title": "Lamp"}
    data.update(overrides)
    return Listing(**data)


def test_trust_badge_awards_verified():
    assert trust_badge(_listing(business_id="b-1", business_verified=True)) == "Verified"


def test_trust_badge_for_unverified_business():
    assert trust_badge(_listing(business_id="b-1")) == "Business"


def test_trust_badge_absent_for_individual_sellers():
    assert trust_badge(_listing(source="individual", user_id="u-1")) is None
