from bazaar.schemas.listing import Listing
from bazaar.services.query_expansion import expand_query, search_listings, tokenize
from bazaar.services.vocabulary import Vocabulary, default_vocabulary, load_vocabulary


def _listing(id, source="retail", **fields):
    return Listing(id=id, source=source, title=fields.pop("title", "Item"), **fields)


def test_tokenize_lowercases_and_drops_blanks():
    assert tokenize("  Red   CAR ") == ["red", "car"]
    assert tokenize(None) == []


def test_expand_query_builds_one_group_per_token():
    expanded = expand_query("car lamp", default_vocabulary())
    assert expanded.tokens == ("car", "lamp")
    assert expanded.groups[0][0] == "car"
    assert "vehicle" in expanded.groups[0]
    assert expanded.groups[1] == ("lamp",)


def test_synonym_matches_listing_without_literal_token():
    vocabulary = default_vocabulary()
    listing = _listing("1", source="individual", title="Used vehicle", category="Misc")
    assert search_listings([listing], expand_query("car", vocabulary), vocabulary) == [listing]


def test_every_token_must_match():
    vocabulary = default_vocabulary()
    sedan = _listing("v-1", source="vehicle", title="Sedan", category="Dealership")
    assert search_listings([sedan], expand_query("car suit", vocabulary), vocabulary) == []


def test_empty_query_keeps_everything():
    vocabulary = default_vocabulary()
    listings = [_listing("1"), _listing("2", source="vehicle")]
    assert search_listings(listings, expand_query("   ", vocabulary), vocabulary) == listings


def test_vehicle_terms_steer_to_vehicle_source():
    vocabulary = default_vocabulary()
    sedan = _listing("v-1", source="vehicle", title="Sedan", category="Dealership")
    toy = _listing("i-1", source="individual", title="Toy car for kids", category="Toys")
    assert search_listings([toy, sedan], expand_query("car", vocabulary), vocabulary) == [sedan]


def test_steering_never_empties_the_results():
    vocabulary = default_vocabulary()
    toy = _listing("i-1", source="individual", title="Toy car for kids", category="Toys")
    assert search_listings([toy], expand_query("car", vocabulary), vocabulary) == [toy]


def test_clothing_terms_steer_to_retail():
    vocabulary = default_vocabulary()
    jacket = _listing("r-1", source="retail", title="Denim jacket", category="Clothing")
    used = _listing("i-2", source="individual", title="Old clothes bundle", category="General")
    assert search_listings([used, jacket], expand_query("clothes", vocabulary), vocabulary) == [jacket]


def test_mixed_vocabulary_does_not_steer():
    vocabulary = default_vocabulary()
    expanded = expand_query("car suit", vocabulary)
    assert expanded.steering_source(vocabulary) is None


def test_vocabulary_is_lowercased_and_loadable_from_a_file(tmp_path):
    path = tmp_path / "vocabulary.json"
    path.write_text('{"synonyms": {"Sofa": ["Couch"]}, "steering": {"retail": ["SOFA"]}}', encoding="utf-8")
    vocabulary = load_vocabulary(str(path))

    assert vocabulary.synonyms == {"sofa": ["couch"]}
    assert vocabulary.steering == {"retail": ["sofa"]}
    assert isinstance(vocabulary, Vocabulary)
