"""
Object-key scheme: construction and prefix validation.
"""

import uuid

from siteledger.services.object_keys import build_object_key, expected_prefix, validate_object_key


def test_project_key_layout():
    key = build_object_key("c1", "p1")
    prefix = "companies/c1/projects/p1/files/"
    assert key.startswith(prefix)
    uuid.UUID(key[len(prefix):])  # random part is a UUID


def test_company_key_layout():
    key = build_object_key("c1")
    assert key.startswith("companies/c1/files/")
    assert "/projects/" not in key


def test_keys_are_never_reused():
    assert build_object_key("c1", "p1") != build_object_key("c1", "p1")


def test_built_keys_validate_for_their_own_scope():
    assert validate_object_key(build_object_key("c1", "p1"), "c1", "p1")
    assert validate_object_key(build_object_key("c1"), "c1")


def test_other_company_prefix_is_rejected():
    key = build_object_key("c2", "p1")
    assert not validate_object_key(key, "c1", "p1")


def test_other_project_prefix_is_rejected():
    key = build_object_key("c1", "p2")
    assert not validate_object_key(key, "c1", "p1")


def test_scope_levels_do_not_mix():
    assert not validate_object_key(build_object_key("c1", "p1"), "c1")
    assert not validate_object_key(build_object_key("c1"), "c1", "p1")


def test_malformed_keys_are_rejected():
    prefix = expected_prefix("c1", "p1")
    assert not validate_object_key("", "c1", "p1")
    assert not validate_object_key(prefix, "c1", "p1")
    assert not validate_object_key(prefix + "../../c2/files/x", "c1", "p1")
    assert not validate_object_key(prefix + "..", "c1", "p1")
    assert not validate_object_key("/" + prefix + "abc", "c1", "p1")


def test_prefix_match_is_not_substring_of_longer_company_id():
    # "c1" must not match keys of company "c10"
    assert not validate_object_key(build_object_key("c10"), "c1")
