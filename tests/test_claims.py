from app.application.services.claims import extract_authorities, has_any_role, realm_roles


def test_realm_roles_become_role_authorities():
    assert set(extract_authorities({"realm_access": {"roles": ["user"]}})) == {"ROLE_USER"}


def test_all_sources_are_combined_and_prefixed():
    claims = {
        "realm_access": {"roles": ["admin", "offline_access"]},
        "resource_access": {
            "auth-demo": {"roles": ["manager"]},
            "account": {"roles": ["manage-account"]},
        },
        "groups": ["staff", "Ops"],
    }

    assert set(extract_authorities(claims)) == {
        "ROLE_ADMIN",
        "ROLE_OFFLINE_ACCESS",
        "ROLE_MANAGER",
        "ROLE_MANAGE-ACCOUNT",
        "GROUP_STAFF",
        "GROUP_OPS",
    }


def test_duplicates_are_dropped():
    claims = {
        "realm_access": {"roles": ["user", "USER"]},
        "resource_access": {"auth-demo": {"roles": ["user"]}},
    }

    assert extract_authorities(claims) == ["ROLE_USER"]


def test_missing_claims_yield_no_authorities():
    assert extract_authorities({}) == []
    assert extract_authorities({"sub": "abc", "email": "a@x.com"}) == []


def test_malformed_claims_are_ignored():
    claims = {
        "realm_access": "admin",
        "resource_access": {"auth-demo": ["admin"], "other": {"roles": "admin"}},
        "groups": "admins",
    }

    assert extract_authorities(claims) == []


def test_malformed_source_does_not_hide_valid_ones():
    claims = {
        "realm_access": {"roles": None},
        "resource_access": {"broken": None, "auth-demo": {"roles": ["manager"]}},
    }

    assert extract_authorities(claims) == ["ROLE_MANAGER"]


def test_realm_roles_keep_token_order_and_case():
    claims = {"realm_access": {"roles": ["user", "admin", "user"]}}

    assert realm_roles(claims) == ["user", "admin", "user"]
    assert realm_roles({}) == []


def test_has_any_role():
    authorities = ["ROLE_USER", "GROUP_ADMIN"]

    assert has_any_role(authorities, "USER", "ADMIN")
    assert not has_any_role(authorities, "ADMIN")
