import logging

import pytest

import main
from addressbook import settings
from addressbook.core.contact import Contact
from addressbook.core.errors import ContactNotFoundError, DuplicateContactError, InvalidContactError
from addressbook.core.matcher import CandidatePair, DuplicateDetector, SimilarityScorer
from addressbook.core.merger import ContactMerger, MergeOutcome, NotFound
from addressbook.core.service import ContactService
from addressbook.core.statistics import compute_statistics
from addressbook.core.types import ValidationLevel
from addressbook.io.csv import CSVHandler
from addressbook.io.store import InMemoryContactStore
from addressbook.io.vcard import VCardHandler
from addressbook.processors.address import AddressProcessor
from addressbook.utils.string import is_blank, levenshtein_distance, string_similarity
from addressbook.utils.validation import validate_contact

logger = logging.getLogger(__name__)


# --- Test Cases ---
def generate_distance_cases():
    """Known edit distances, including the empty-string edges"""
    return [
        ("kitten", "sitting", 3),
        ("fatou", "fatu", 1),
        ("flaw", "lawn", 2),
        ("", "abc", 3),
        ("abc", "", 3),
        ("ndiaye", "ndiaye", 0),
        ("diop", "diouf", 2),
    ]


def generate_contacts():
    """A small address book with two likely duplicate pairs"""
    return [
        Contact("Diop", "Awa", "awa@example.com", phone="771111111"),
        Contact("Ndiaye", "Fatou", "fatou@example.com"),
        Contact("Diop", "Awa", "awa.diop@example.com", phone="771111111", city="Dakar"),
        Contact("Sarr", "Khadija", "khadija@example.com", phone="771234567"),
        Contact("Ndiaye", "Fatu", "fatu@example.com"),
        Contact("Sarr", "Khadidja", "k.sarr@example.com", phone="771234567"),
    ]


def make_store(contacts=None):
    return InMemoryContactStore(contacts if contacts is not None else generate_contacts())


# --- String similarity ---
@pytest.mark.parametrize("s1, s2, expected", generate_distance_cases())
def test_levenshtein_distance(s1, s2, expected):
    assert levenshtein_distance(s1, s2) == expected
    assert levenshtein_distance(s2, s1) == expected


@pytest.mark.parametrize("value", ["Awa", "Ndiaye", "x", "Jean-Pierre", "  padded  "])
def test_similarity_of_identical_strings_is_one(value):
    assert string_similarity(value, value) == 1.0


@pytest.mark.parametrize("value", ["Awa", "x", ""])
def test_similarity_with_empty_string_is_zero(value):
    assert string_similarity(value, "") == 0.0
    assert string_similarity("", value) == 0.0
    assert string_similarity(value, None) == 0.0


def test_similarity_is_case_insensitive():
    assert string_similarity("DIOP", "diop") == 1.0
    assert string_similarity("Fatou", "FATU") == pytest.approx(0.8)


def test_is_blank():
    assert is_blank(None)
    assert is_blank("")
    assert is_blank("   ")
    assert not is_blank(" a ")


# --- SimilarityScorer ---
def test_full_match_scores_one():
    a = Contact("Diop", "Awa", "a@example.com", phone="771111111")
    b = Contact("Diop", "Awa", "b@example.com", phone="771111111")
    assert SimilarityScorer().score(a, b) == pytest.approx(1.0)


def test_missing_phone_caps_score_at_name_weights():
    a = Contact("Diop", "Awa", "a@example.com", phone="771111111")
    b = Contact("Diop", "Awa", "b@example.com")
    assert SimilarityScorer().score(a, b) == pytest.approx(0.70)


def test_different_phone_counts_but_adds_nothing():
    a = Contact("Diop", "Awa", phone="771111111")
    b = Contact("Diop", "Awa", phone="772222222")
    assert SimilarityScorer().score(a, b) == pytest.approx(0.70)


def test_phone_compared_without_normalization():
    a = Contact("Diop", "Awa", phone="77 111 11 11")
    b = Contact("Diop", "Awa", phone="771111111")
    assert SimilarityScorer().score(a, b) == pytest.approx(0.70)


def test_one_character_first_name_edit():
    c = Contact("Ndiaye", "Fatou")
    d = Contact("Ndiaye", "Fatu")
    assert SimilarityScorer().score(c, d) == pytest.approx(0.35 * 1.0 + 0.35 * 0.8)


def test_only_phone_compared():
    a = Contact(phone="771111111")
    b = Contact(phone="771111111")
    assert SimilarityScorer().score(a, b) == pytest.approx(0.30)


def test_no_comparable_fields_scores_zero():
    a = Contact(email="a@example.com")
    b = Contact(last_name="   ", first_name="", email="b@example.com", city="Dakar")
    assert SimilarityScorer().score(a, b) == 0.0


def test_score_is_symmetric():
    scorer = SimilarityScorer()
    contacts = generate_contacts() + [Contact(), Contact("DIOP", "awa", phone="771111111")]
    for a in contacts:
        for b in contacts:
            assert scorer.score(a, b) == scorer.score(b, a)


def test_score_stays_in_unit_interval():
    scorer = SimilarityScorer()
    contacts = generate_contacts()
    for a in contacts:
        for b in contacts:
            assert 0.0 <= scorer.score(a, b) <= 1.0 + 1e-9


# --- DuplicateDetector ---
def test_detect_flags_expected_pairs():
    store = make_store()
    pairs = DuplicateDetector().detect(store.list_all())
    ids = [(pair.contact1_id, pair.contact2_id) for pair in pairs]

    # Diop/Diop is a perfect match; Sarr Khadija/Khadidja shares the phone
    assert ids == [(1, 3), (4, 6)]
    logger.info(f"Detected pairs: {ids}")


def test_detect_not_flagged_at_exact_threshold():
    contacts = [Contact("Diop", "Awa", id=1), Contact("Diop", "Awa", id=2)]
    assert DuplicateDetector().detect(contacts) == []


def test_detect_emits_pairs_in_iteration_order():
    contacts = [Contact("Diop", "Awa", phone="771111111", id=i) for i in (10, 20, 30)]
    pairs = DuplicateDetector().detect(contacts)
    assert [(p.contact1_id, p.contact2_id) for p in pairs] == [(10, 20), (10, 30), (20, 30)]


def test_detect_bounds_and_idempotence():
    contacts = make_store().list_all()
    detector = DuplicateDetector()
    first = detector.detect(contacts)
    n = len(contacts)

    assert len(first) <= n * (n - 1) // 2
    assert all(pair.score > 0.70 for pair in first)
    assert detector.detect(contacts) == first


def test_detect_handles_small_inputs():
    detector = DuplicateDetector()
    assert detector.detect([]) == []
    assert detector.detect([Contact("Diop", "Awa")]) == []


def test_detect_with_custom_threshold():
    contacts = [Contact("Ndiaye", "Fatou", id=1), Contact("Ndiaye", "Fatu", id=2)]
    pairs = DuplicateDetector(threshold=0.6).detect(contacts)
    assert len(pairs) == 1
    assert pairs[0].score_percent == 63


def test_candidate_pair_to_dict():
    pair = CandidatePair(1, 2, 0.125)
    assert pair.to_dict() == {"contact1Id": 1, "contact2Id": 2, "score": 0.125, "scorePercent": 13}


# --- ContactMerger ---
def test_scenario_score_then_merge_fills_city():
    store = InMemoryContactStore()
    a = store.save(Contact("Diop", "Awa", "awa@example.com", phone="771111111"))
    b = store.save(Contact("Diop", "Awa", "awa.diop@example.com", phone="771111111", city="Dakar"))

    assert SimilarityScorer().score(a, b) == pytest.approx(1.0)
    assert len(DuplicateDetector().detect(store.list_all())) == 1

    outcome = ContactMerger(store).merge(a.id, b.id)
    assert isinstance(outcome, MergeOutcome)
    assert outcome.deleted_id == b.id
    assert outcome.merged_contact.city == "Dakar"
    assert store.get_by_id(a.id).city == "Dakar"
    assert store.get_by_id(b.id) is None


def test_merge_keeps_target_values_and_identity():
    store = InMemoryContactStore()
    target = store.save(Contact("Diop", None, "awa@example.com", phone="771111111", address="  "))
    source = store.save(
        Contact("Dioop", "Awa", "other@example.com", phone="779999999", address="12 Rue X", city="Thies", country="Senegal")
    )

    outcome = ContactMerger(store).merge(target.id, source.id)
    merged = outcome.merged_contact

    assert merged.last_name == "Diop"
    assert merged.first_name is None
    assert merged.email == "awa@example.com"
    assert merged.phone == "771111111"
    assert merged.address == "12 Rue X"
    assert merged.city == "Thies"
    assert merged.country == "Senegal"


def test_merge_copies_phone_into_blank_target():
    store = InMemoryContactStore()
    target = store.save(Contact("Diop", "Awa", "awa@example.com"))
    source = store.save(Contact("Diop", "Awa", "awa2@example.com", phone="771111111"))

    ContactMerger(store).merge(target.id, source.id)
    assert store.get_by_id(target.id).phone == "771111111"


def test_merge_missing_target_returns_not_found_without_mutation():
    store = make_store()
    before = store.list_all()

    result = ContactMerger(store).merge(99, 3)
    assert result == NotFound(99)
    assert store.list_all() == before


def test_merge_missing_source_returns_not_found_without_mutation():
    store = make_store()
    before = store.list_all()

    result = ContactMerger(store).merge(1, 42)
    assert result == NotFound(42)
    assert store.list_all() == before


def test_merge_into_itself_is_rejected():
    store = make_store()
    before = store.list_all()

    with pytest.raises(InvalidContactError):
        ContactMerger(store).merge(1, 1)
    assert store.list_all() == before


# --- Store ---
def test_store_assigns_ids_and_returns_copies():
    store = InMemoryContactStore()
    saved = store.save(Contact("Diop", "Awa", "awa@example.com"))
    assert saved.id == 1

    saved.city = "Dakar"
    assert store.get_by_id(1).city is None


def test_store_load_keeps_ids():
    store = InMemoryContactStore([Contact("Diop", "Awa", "awa@example.com", id=7)])
    assert store.get_by_id(7) is not None
    assert store.save(Contact("Sarr", "Khadija", "k@example.com")).id == 8


def test_store_rejects_duplicate_email():
    store = make_store()
    with pytest.raises(DuplicateContactError):
        store.save(Contact("Other", "Person", "awa@example.com"))


def test_store_delete_by_id():
    store = make_store()
    assert store.delete_by_id(1)
    assert not store.delete_by_id(1)
    assert store.count() == 5


def test_transaction_rolls_back_on_error():
    store = make_store()
    before = store.list_all()

    with pytest.raises(RuntimeError):
        with store.transaction():
            store.delete_by_id(1)
            store.save(Contact("New", "Person", "new@example.com"))
            raise RuntimeError("boom")

    assert store.list_all() == before
    assert store.save(Contact("New", "Person", "new@example.com")).id == 7


# --- ContactService ---
class FailingDeleteStore(InMemoryContactStore):
    def delete_by_id(self, contact_id):
        raise RuntimeError("delete failed")


def test_service_merge_is_atomic():
    store = FailingDeleteStore(generate_contacts())
    service = ContactService(store)

    with pytest.raises(RuntimeError):
        service.merge_contacts(1, 3)

    assert store.get_by_id(1).city is None
    assert store.get_by_id(3) is not None


def test_service_merge_and_not_found():
    service = ContactService(make_store())

    outcome = service.merge_contacts(1, 3)
    assert outcome["deletedId"] == 3
    assert outcome["mergedContact"]["city"] == "Dakar"

    with pytest.raises(ContactNotFoundError) as excinfo:
        service.get_contact(3)
    assert excinfo.value.contact_id == 3

    with pytest.raises(ContactNotFoundError) as excinfo:
        service.merge_contacts(1, 3)
    assert excinfo.value.contact_id == 3


def test_service_detect_duplicates_shape():
    pairs = ContactService(make_store()).detect_duplicates()
    assert pairs[0] == {"contact1Id": 1, "contact2Id": 3, "score": pytest.approx(1.0), "scorePercent": 100}
    assert len(pairs) == 2


def test_service_create_validates():
    service = ContactService(make_store())

    with pytest.raises(InvalidContactError):
        service.create_contact(Contact("Seck", "Awa"))
    with pytest.raises(InvalidContactError):
        service.create_contact(Contact("Seck", "Awa", "not-an-email"))
    with pytest.raises(DuplicateContactError):
        service.create_contact(Contact("Seck", "Awa", "awa@example.com"))

    created = service.create_contact(Contact("Seck", "Awa", "seck@example.com"))
    assert created.id == 7
    assert service.email_exists("seck@example.com")
    assert not service.email_exists("  ")


def test_service_lookups():
    service = ContactService(make_store())

    assert service.get_contact_by_email("fatou@example.com").first_name == "Fatou"
    assert service.get_contact_by_email("nobody@example.com") is None
    assert [c.id for c in service.search_by_last_name("ndi")] == [2, 5]
    assert [c.id for c in service.search_by_first_name("KHAD")] == [4, 6]
    with pytest.raises(ValueError):
        service.search_by_last_name(" ")
    with pytest.raises(ValueError):
        service.get_contact_by_email("")


def test_service_update_contact():
    service = ContactService(make_store())

    updated = service.update_contact(2, Contact(last_name="", first_name="Fatoumata", phone="770000000"))
    assert updated.last_name == "Ndiaye"
    assert updated.first_name == "Fatoumata"
    assert updated.phone == "770000000"

    with pytest.raises(DuplicateContactError):
        service.update_contact(2, Contact(email="awa@example.com"))
    with pytest.raises(ContactNotFoundError):
        service.update_contact(99, Contact(first_name="X"))


def test_service_delete_contact():
    service = ContactService(make_store())
    service.delete_contact(1)
    assert service.count_contacts() == 5
    with pytest.raises(ContactNotFoundError):
        service.delete_contact(1)


def test_service_filter_and_page():
    service = ContactService(make_store())

    assert [c.id for c in service.filter_contacts(last_name="sarr", phone="1234")] == [4, 6]
    assert [c.id for c in service.filter_contacts(city="dak")] == [3]

    page = service.page(page=0, size=4, sort="last_name")
    assert [c.last_name for c in page.items] == ["Diop", "Diop", "Ndiaye", "Ndiaye"]
    assert page.total_items == 6
    assert page.total_pages == 2

    by_city = service.page(sort="city", direction="desc")
    assert by_city.items[0].city == "Dakar"

    with pytest.raises(ValueError):
        service.page(sort="favorite")
    with pytest.raises(ValueError):
        service.page(size=0)


def test_service_favorites():
    service = ContactService(make_store())

    assert service.toggle_favorite(2).favorite
    assert service.is_favorite(2)
    assert [c.id for c in service.favorites()] == [2]
    assert not service.toggle_favorite(2).favorite
    assert not service.is_favorite(99)


def test_service_import_contacts():
    service = ContactService(make_store())
    incoming = [
        Contact("Seck", "Awa", "seck@example.com", address="  12   Rue  Blaise Diagne ", id=1),
        Contact("Diop", "Awa", "awa@example.com"),
        Contact("Fall", None, "fall@example.com"),
    ]

    result = service.import_contacts(incoming)
    assert (result.imported, result.skipped, result.errors, result.total) == (1, 1, 1, 3)
    assert len(result.messages) == 2

    imported = service.get_contact_by_email("seck@example.com")
    assert imported.id == 7
    assert imported.address == "12 Rue Blaise Diagne"
    assert service.get_contact(1).last_name == "Diop"


# --- Statistics ---
def test_statistics():
    contacts = generate_contacts() + [
        Contact("Fall", "Moussa", "m@example.com", city="Dakar", country="Senegal", address="1 Rue A"),
        Contact("Gueye", "Ibou", "i@example.com", city="Thies", country="SN"),
    ]
    stats = compute_statistics(contacts)

    assert stats.total_contacts == 8
    assert stats.contacts_by_city == {"Dakar": 2, "Thies": 1}
    assert stats.top_city == "Dakar"
    assert stats.with_phone == 4
    assert stats.with_address == 1
    assert stats.contacts_by_country == {"Senegal": 1, "SN": 1}

    canonical = compute_statistics(contacts, canonical_countries=True)
    assert canonical.contacts_by_country == {"Senegal": 2}
    assert canonical.top_country == "Senegal"


def test_statistics_empty():
    stats = compute_statistics([])
    assert stats.total_contacts == 0
    assert stats.contacts_by_city == {}
    assert stats.top_city is None
    assert stats.top_country is None


# --- Validation ---
def test_validation_levels():
    contact = Contact("Diop", "Awa", "awa@example.com", phone="123", country="Atlantis")

    assert validate_contact(Contact(), ValidationLevel.NONE) == {"errors": [], "warnings": []}
    assert validate_contact(contact, ValidationLevel.BASIC) == {"errors": [], "warnings": []}

    strict = validate_contact(contact, ValidationLevel.STRICT)
    assert strict["errors"] == []
    assert len(strict["warnings"]) == 2

    valid = Contact("Martin", "Paul", "paul@example.com", phone="+33 1 42 68 53 00", country="France")
    assert validate_contact(valid, ValidationLevel.STRICT) == {"errors": [], "warnings": []}


def test_validation_reports_missing_fields():
    results = validate_contact(Contact(first_name="Awa"))
    assert results["errors"] == [
        "Missing required field: last_name",
        "Missing required field: email",
    ]


def test_validation_level_setting_is_parsed_by_name():
    assert settings.parse_validation_level(" strict ") is ValidationLevel.STRICT
    assert settings.parse_validation_level("None") is ValidationLevel.NONE

    with pytest.raises(ValueError, match="expected one of: NONE, BASIC, STRICT"):
        settings.parse_validation_level("paranoid")


def test_address_processor():
    processor = AddressProcessor()
    assert processor.clean_address(" 12,  Rue   X ") == "12, Rue X"
    assert processor.canonical_country("sn") == "Senegal"
    assert processor.canonical_country(" Atlantis ") == "Atlantis"
    assert not processor.is_known_country("")


# --- File formats ---
def test_csv_round_trip(tmp_path):
    path = tmp_path / "contacts.csv"
    contacts = make_store().list_all()
    contacts[1].favorite = True

    handler = CSVHandler()
    handler.write_csv(contacts, str(path))
    assert handler.read_csv(str(path)) == contacts


def test_csv_reads_french_headers(tmp_path):
    path = tmp_path / "import.csv"
    path.write_text(
        "nom,prenom,email,telephone,adresse,ville,pays\n"
        "Sarr,Khadija,khadija@example.com,771234567,,Dakar,Senegal\n"
        ",,,,,,\n"
        "Seck,Awa,awa@example.com,,,,\n",
        encoding="utf-8",
    )

    contacts = CSVHandler().read_csv(str(path))
    assert len(contacts) == 2
    assert contacts[0].last_name == "Sarr"
    assert contacts[0].phone == "771234567"
    assert contacts[0].address is None
    assert contacts[0].id is None
    assert contacts[1].city is None


def test_vcard_round_trip(tmp_path):
    path = tmp_path / "contacts.vcf"
    contacts = [
        Contact("Diop", "Awa", "awa@example.com", phone="771111111", address="12 Rue X", city="Dakar", country="Senegal"),
        Contact("Ndiaye", "Fatou", "fatou@example.com"),
    ]

    handler = VCardHandler()
    handler.write_vcard(contacts, str(path))
    read = handler.read_vcard(str(path))

    assert [(c.last_name, c.first_name, c.email) for c in read] == [
        ("Diop", "Awa", "awa@example.com"),
        ("Ndiaye", "Fatou", "fatou@example.com"),
    ]
    assert read[0].phone == "771111111"
    assert read[0].city == "Dakar"
    assert read[1].phone is None
    assert read[1].city is None


def test_vcard_joins_multi_value_components(tmp_path):
    path = tmp_path / "compound.vcf"
    path.write_text(
        "BEGIN:VCARD\r\n"
        "VERSION:3.0\r\n"
        "FN:Jean Van Damme\r\n"
        "N:Van,Damme;Jean;;;\r\n"
        "EMAIL:jean@example.com\r\n"
        "TEL:771111111\r\n"
        "ADR:;;12,Rue X;Saint,Louis;;;Senegal\r\n"
        "END:VCARD\r\n",
        encoding="utf-8",
    )

    contact = VCardHandler().read_vcard(str(path))[0]
    assert contact.last_name == "Van Damme"
    assert contact.first_name == "Jean"
    assert contact.address == "12 Rue X"
    assert contact.city == "Saint Louis"
    assert contact.country == "Senegal"

    other = Contact("Van Damme", "Jean", phone="771111111")
    assert SimilarityScorer().score(contact, other) == pytest.approx(1.0)


# --- CLI ---
def test_cli_merge_updates_store_file(tmp_path, capsys):
    path = tmp_path / "contacts.csv"
    CSVHandler().write_csv(make_store().list_all(), str(path))

    assert main.main(["--store", str(path), "duplicates"]) == 0
    assert "2 potential duplicate pair(s) detected" in capsys.readouterr().out

    assert main.main(["--store", str(path), "merge", "1", "3"]) == 0
    contacts = CSVHandler().read_csv(str(path))
    assert [c.id for c in contacts] == [1, 2, 4, 5, 6]
    assert contacts[0].city == "Dakar"

    assert main.main(["--store", str(path), "merge", "1", "3"]) == 1
    assert "Contact not found with id: 3" in capsys.readouterr().err


def test_cli_merge_into_itself_reports_error(tmp_path, capsys):
    path = tmp_path / "contacts.csv"
    CSVHandler().write_csv(make_store().list_all(), str(path))

    assert main.main(["--store", str(path), "merge", "1", "1"]) == 1
    assert "Error: Cannot merge contact 1 into itself" in capsys.readouterr().err
    assert len(CSVHandler().read_csv(str(path))) == 6


def test_cli_import_and_export(tmp_path, capsys):
    store_path = tmp_path / "book.csv"
    vcf_path = tmp_path / "in.vcf"
    VCardHandler().write_vcard([Contact("Diop", "Awa", "awa@example.com", phone="771111111")], str(vcf_path))

    assert main.main(["--store", str(store_path), "import", str(vcf_path)]) == 0
    assert "1 imported" in capsys.readouterr().out

    export_path = tmp_path / "out.csv"
    assert main.main(["--store", str(store_path), "export", str(export_path)]) == 0
    exported = CSVHandler().read_csv(str(export_path))
    assert [(c.id, c.last_name) for c in exported] == [(1, "Diop")]
