from __future__ import annotations

import pytest

from steam_catalog_importer.schema import ROW_COLUMNS, SteamGameRow
from steam_catalog_importer.transform import normalize_platform_flag, transform_record


def _kaggle_record(**overrides: str) -> dict[str, str]:
    rec = {
        "AppID": "20200",
        "Name": "Galactic Bowling",
        "Release date": "Oct 21, 2008",
        "Estimated owners": "0 - 20000",
        "Peak CCU": "0",
        "Required age": "0",
        "Price": "19.99",
        "DiscountDLC count": "0",
        "About the game": "Galactic Bowling is an exaggerated and stylized bowling game.",
        "Supported languages": "['English']",
        "Full audio languages": "[]",
        "Reviews": "",
        "Header image": "https://cdn.akamai.steamstatic.com/steam/apps/20200/header.jpg",
        "Website": "http://www.galacticbowling.net",
        "Support url": "",
        "Support email": "",
        "Windows": "True",
        "Mac": "False",
        "Linux": "False",
        "Metacritic score": "0",
        "Metacritic url": "",
        "User score": "0",
        "Positive": "6",
        "Negative": "11",
        "Score rank": "",
        "Achievements": "30",
        "Recommendations": "0",
        "Notes": "",
        "Average playtime forever": "0",
        "Average playtime two weeks": "0",
        "Median playtime forever": "0",
        "Median playtime two weeks": "0",
        "Developers": "Perpetual FX Creative",
        "Publishers": "Perpetual FX Creative",
        "Categories": "Single-player,Multi-player,Steam Achievements",
        "Genres": "Casual,Indie,Sports",
        "Tags": "Indie,Casual,Sports,Bowling",
        "Screenshots": "https://cdn.akamai.steamstatic.com/steam/apps/20200/0000005994.jpg",
        "Movies": "http://cdn.akamai.steamstatic.com/steam/apps/256863704/movie_max.mp4",
    }
    rec.update(overrides)
    return rec


def test_transform_record_maps_kaggle_headers_to_typed_row() -> None:
    row = transform_record(_kaggle_record())

    assert isinstance(row, SteamGameRow)
    assert len(ROW_COLUMNS) == 39
    assert row.app_id == 20200
    assert row.name == "Galactic Bowling"
    assert row.release_date == "Oct 21, 2008"
    assert row.estimated_owners == "0 - 20000"
    assert row.price == 19.99
    assert row.positive == 6
    assert row.negative == 11
    assert row.achievements == 30
    assert row.windows == "True"
    assert row.mac == "False"
    assert row.metacritic_score == "0"
    assert row.average_playtime_forever == "0"
    assert row.tags == "Indie,Casual,Sports,Bowling"
    # Empty text cells become NULL; empty counts fall back to 0.
    assert row.reviews is None
    assert row.support_email is None
    assert row.score_rank == 0


def test_transform_record_non_numeric_app_id_is_none() -> None:
    assert transform_record({"AppID": "not-a-number", "Name": "X"}).app_id is None
    assert transform_record({"app_id": "", "Name": "X"}).app_id is None
    assert transform_record({"Name": "X"}).app_id is None


def test_transform_record_missing_count_fields_default_to_zero() -> None:
    row = transform_record({"AppID": "10", "Name": "Counter-Strike"})
    for col in (
        "peak_ccu",
        "required_age",
        "discount_dlc_count",
        "positive",
        "negative",
        "score_rank",
        "recommendations",
        "average_playtime_two_weeks",
        "median_playtime_forever",
        "median_playtime_two_weeks",
    ):
        assert getattr(row, col) == 0
    assert row.price == 0.0
    assert row.achievements is None


def test_transform_record_unparseable_numbers_fall_back_to_defaults() -> None:
    row = transform_record(
        {"AppID": "10", "Name": "X", "Peak CCU": "lots", "Price": "Free", "Achievements": "many"}
    )
    assert row.peak_ccu == 0
    assert row.price == 0.0
    assert row.achievements is None


def test_transform_record_achievements_zero_is_none() -> None:
    assert transform_record({"AppID": "1", "Name": "A", "Achievements": "0"}).achievements is None
    assert transform_record({"AppID": "1", "Name": "A", "Achievements": "15"}).achievements == 15
    assert transform_record({"AppID": "1", "Name": "A", "Achievements": ""}).achievements is None


def test_transform_record_counts_beyond_sqlite_integer_range_fall_back_to_defaults() -> None:
    row = transform_record(
        {
            "AppID": "1",
            "Name": "Big",
            "Peak CCU": "99999999999999999999",
            "Negative": "-99999999999999999999",
            "Achievements": "99999999999999999999",
            "Positive": "9223372036854775807",
        }
    )
    assert row.peak_ccu == 0
    assert row.negative == 0
    assert row.achievements is None
    assert row.positive == 2**63 - 1


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("True", "True"),
        ("true", "True"),
        (True, "True"),
        ("False", "False"),
        ("false", "False"),
        (False, "False"),
        ("N/A", "N/A"),
        ("TRUE", "TRUE"),
        ("", None),
        (None, None),
    ],
)
def test_normalize_platform_flag(raw: object, expected: object) -> None:
    assert normalize_platform_flag(raw) == expected


def test_transform_record_platform_flags() -> None:
    row = transform_record({"AppID": "1", "Name": "A", "Windows": "true", "Mac": False, "Linux": "N/A"})
    assert (row.windows, row.mac, row.linux) == ("True", "False", "N/A")


def test_transform_record_last_duplicate_header_wins() -> None:
    raw = {"AppID": "1", "Name": "A", "Peak CCU": "5", "peak-ccu": "9"}
    assert transform_record(raw).peak_ccu == 9

    raw = {"app_id": "1", "AppID": "2", "Name": "A"}
    assert transform_record(raw).app_id == 2


def test_transform_record_ignores_unknown_columns_and_is_deterministic() -> None:
    raw = _kaggle_record(**{"Some Extra Column": "x"})
    a = transform_record(raw)
    b = transform_record(dict(raw))
    assert a == b
    assert not hasattr(a, "some_extra_column")


def test_steam_game_row_rejects_mistyped_values() -> None:
    row = transform_record({"AppID": "1", "Name": "A"})
    values = dict(zip(ROW_COLUMNS, row.as_params()))
    values["peak_ccu"] = "12"
    with pytest.raises(TypeError):
        SteamGameRow(**values)
