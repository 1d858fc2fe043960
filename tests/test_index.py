"""
Tests for decoding the repository index.
"""

import copy
import json

import pytest

from fdroidrepo.data.index import Permission, parse_index, read_index
from fdroidrepo.data.metadata import Category
from fdroidrepo.errors import IndexDecodeError, MalformedIndexError

PACKAGE = {
    "added": 1690000000000,
    "apkName": "org.example.notes_3.apk",
    "hash": "ab" * 32,
    "hashType": "sha256",
    "packageName": "org.example.notes",
    "size": 123456,
    "versionName": "1.3",
    "versionCode": 3,
    "nativecode": ["arm64-v8a", "x86_64"],
    "minSdkVersion": 21,
    "maxSdkVersion": 34,
    "targetSdkVersion": 33,
    "sig": "0123456789abcdef",
    "signer": "fedcba9876543210",
    "uses-permission": [
        ["android.permission.INTERNET", None],
        ["android.permission.WRITE_EXTERNAL_STORAGE", 28],
    ],
}

APP = {
    "packageName": "org.example.notes",
    "name": "Notes",
    "license": "GPL-3.0-only",
    "categories": ["Writing", "Productivity"],
    "suggestedVersionCode": "3",
    "added": 1690000000000,
    "lastUpdated": 1695000000000,
}


def make_index(app=None, packages=None):
    return {
        "repo": {"name": "test"},
        "apps": [copy.deepcopy(app or APP)],
        "packages": {"org.example.notes": copy.deepcopy(packages or [PACKAGE])},
    }


class TestParseIndex:
    def test_complete_index(self):
        (app,) = parse_index(make_index())

        assert app.package_name == "org.example.notes"
        assert app.name == "Notes"
        assert app.license == "GPL-3.0-only"
        assert app.suggested_version_code == "3"
        assert app.added == 1690000000000
        assert app.last_updated == 1695000000000

        (package,) = app.packages
        assert package.apk_name == "org.example.notes_3.apk"
        assert package.size == 123456
        assert package.nativecode == ["arm64-v8a", "x86_64"]
        assert package.min_sdk_version == 21
        assert package.max_sdk_version == 34
        assert package.target_sdk_version == 33
        assert package.signer == "fedcba9876543210"
        assert package.version_code == 3
        assert package.uses_permission == [
            Permission("android.permission.INTERNET", None),
            Permission("android.permission.WRITE_EXTERNAL_STORAGE", 28),
        ]

    def test_unknown_category_is_kept(self):
        (app,) = parse_index(make_index())
        assert app.categories == [Category.WRITING, "Productivity"]

    def test_app_order_is_preserved(self):
        index = make_index()
        names = ["org.example.b", "org.example.a", "org.example.c"]
        index["apps"] = [dict(APP, packageName=n) for n in names]
        index["packages"] = {n: [dict(PACKAGE, packageName=n)] for n in names}

        assert [app.package_name for app in parse_index(index)] == names

    def test_empty_index(self):
        assert parse_index({"apps": [], "packages": {}}) == []

    @pytest.mark.parametrize(
        "field", ["license", "name", "packageName", "categories", "added", "lastUpdated"]
    )
    def test_missing_app_field_fails_everything(self, field):
        index = make_index()
        index["apps"].insert(0, dict(APP))
        del index["apps"][1][field]
        with pytest.raises(MalformedIndexError):
            parse_index(index)

    @pytest.mark.parametrize(
        "field,value",
        [("added", "yesterday"), ("added", True), ("name", 3), ("categories", "Writing")],
    )
    def test_wrong_app_field_type(self, field, value):
        with pytest.raises(MalformedIndexError):
            parse_index(make_index(app=dict(APP, **{field: value})))

    def test_non_string_category(self):
        with pytest.raises(MalformedIndexError):
            parse_index(make_index(app=dict(APP, categories=["Writing", 7])))

    def test_missing_package_list(self):
        index = make_index()
        index["packages"] = {}
        with pytest.raises(MalformedIndexError):
            parse_index(index)

    def test_package_list_of_other_app(self):
        index = make_index(packages=[dict(PACKAGE, packageName="org.example.other")])
        with pytest.raises(MalformedIndexError):
            parse_index(index)

    @pytest.mark.parametrize("field", ["apkName", "hash", "hashType", "size", "versionName"])
    def test_missing_package_field(self, field):
        package = dict(PACKAGE)
        del package[field]
        with pytest.raises(MalformedIndexError):
            parse_index(make_index(packages=[package]))

    def test_negative_size(self):
        with pytest.raises(MalformedIndexError):
            parse_index(make_index(packages=[dict(PACKAGE, size=-1)]))

    def test_missing_optional_field(self):
        package = dict(PACKAGE)
        del package["signer"]

        (app,) = parse_index(make_index(packages=[package]))

        (parsed,) = app.packages
        assert parsed.signer is None
        assert parsed.sig == "0123456789abcdef"
        assert parsed.version_code == 3
        assert parsed.min_sdk_version == 21

    def test_minimal_package(self):
        required = ("added", "apkName", "hash", "hashType", "packageName", "size", "versionName")
        package = {k: PACKAGE[k] for k in required}

        (app,) = parse_index(make_index(packages=[package]))

        (parsed,) = app.packages
        assert parsed.nativecode == []
        assert parsed.uses_permission == []
        assert parsed.min_sdk_version is None
        assert parsed.max_sdk_version is None
        assert parsed.target_sdk_version is None
        assert parsed.sig is None
        assert parsed.version_code is None

    @pytest.mark.parametrize(
        "field,value",
        [
            ("minSdkVersion", "21"),
            ("maxSdkVersion", -4),
            ("targetSdkVersion", 2**32),
            ("versionCode", 3.5),
            ("sig", 42),
            ("nativecode", "arm64-v8a"),
            ("nativecode", ["arm64-v8a", 1]),
            ("uses-permission", {"android.permission.INTERNET": None}),
        ],
    )
    def test_malformed_optional_field_is_absent(self, field, value):
        (app,) = parse_index(make_index(packages=[dict(PACKAGE, **{field: value})]))
        (parsed,) = app.packages
        attr = {
            "minSdkVersion": "min_sdk_version",
            "maxSdkVersion": "max_sdk_version",
            "targetSdkVersion": "target_sdk_version",
            "versionCode": "version_code",
            "sig": "sig",
            "nativecode": "nativecode",
            "uses-permission": "uses_permission",
        }[field]
        assert getattr(parsed, attr) in (None, [])

    @pytest.mark.parametrize(
        "entry",
        [
            ["android.permission.INTERNET"],
            ["android.permission.INTERNET", None, None],
            [42, None],
            "android.permission.INTERNET",
        ],
    )
    def test_malformed_permission_fails(self, entry):
        package = dict(PACKAGE, **{"uses-permission": [entry]})
        with pytest.raises(MalformedIndexError):
            parse_index(make_index(packages=[package]))

    def test_permission_with_odd_max_version(self):
        package = dict(PACKAGE, **{"uses-permission": [["android.permission.CAMERA", "28"]]})
        (app,) = parse_index(make_index(packages=[package]))
        assert app.packages[0].uses_permission == [Permission("android.permission.CAMERA", None)]

    @pytest.mark.parametrize(
        "document", [[], {"apps": []}, {"packages": {}}, {"apps": {}, "packages": {}}]
    )
    def test_malformed_top_level(self, document):
        with pytest.raises(MalformedIndexError):
            parse_index(document)


class TestReadIndex:
    def test_missing_file_means_no_apps(self, tmp_path):
        assert read_index(tmp_path / "index-v1.json") == []

    def test_invalid_json(self, tmp_path):
        index_file = tmp_path / "index-v1.json"
        index_file.write_text("{not json")
        with pytest.raises(IndexDecodeError):
            read_index(index_file)

    def test_reads_file(self, tmp_path):
        index_file = tmp_path / "index-v1.json"
        index_file.write_text(json.dumps(make_index()))
        assert [app.name for app in read_index(index_file)] == ["Notes"]
