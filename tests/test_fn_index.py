from pgrpc.fn_index import FunctionId


def test_parse_qualified():
    fid = FunctionId.parse("api.get_account_by_email")
    assert fid.schema == "api"
    assert fid.name == "get_account_by_email"


def test_parse_unqualified_defaults_to_public():
    fid = FunctionId.parse("get_account_by_email")
    assert fid == FunctionId(schema="public", name="get_account_by_email")


def test_parse_splits_on_first_dot_only():
    fid = FunctionId.parse("core.raise_error.extra")
    assert fid.schema == "core"
    assert fid.name == "raise_error.extra"


def test_hashable():
    ids = {FunctionId.parse("core.raise_error"), FunctionId("core", "raise_error")}
    assert len(ids) == 1