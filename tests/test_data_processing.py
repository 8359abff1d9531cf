import numpy as np
import pandas as pd
import pytest

from batted_ball.data_processing import (
    add_batted_ball_features,
    derive_column,
    drop_missing,
    filter_rows,
    join_tables,
    load_datasets,
    load_table,
    profile_table,
    select_columns,
    stratified_split,
)


class TestLoadTable:
    def test_reads_csv_with_inferred_types(self, tmp_path, parks: pd.DataFrame) -> None:
        path = tmp_path / "parks.csv"
        parks.to_csv(path, index=False)

        loaded = load_table(str(path))

        assert loaded.shape == parks.shape
        assert loaded["LF_Dim"].dtype.kind == "i"
        assert loaded["NAME"].tolist() == parks["NAME"].tolist()

    def test_missing_file_is_fatal(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            load_table(str(tmp_path / "nope.csv"))

    def test_load_datasets_returns_both_tables(self, tmp_path, batted_balls, parks) -> None:
        batted_balls.to_csv(tmp_path / "bb.csv", index=False)
        parks.to_csv(tmp_path / "parks.csv", index=False)

        bb, pk = load_datasets(str(tmp_path / "bb.csv"), str(tmp_path / "parks.csv"))

        assert len(bb) == len(batted_balls)
        assert len(pk) == len(parks)


class TestJoinTables:
    def test_row_count_matches_left_table(self, batted_balls, parks) -> None:
        joined = join_tables(batted_balls, parks, key="park")
        assert len(joined) == len(batted_balls)
        assert {"NAME", "CF_Dim"} <= set(joined.columns)

    def test_unmatched_rows_keep_null_right_columns(self, batted_balls, parks) -> None:
        partial = parks[parks["park"] != "col"]
        joined = join_tables(batted_balls, partial, key="park")

        unmatched = joined[joined["park"] == "col"]
        assert len(joined) == len(batted_balls)
        assert len(unmatched) == (batted_balls["park"] == "col").sum()
        assert unmatched["NAME"].isna().all()
        assert joined.loc[joined["park"] != "col", "NAME"].notna().all()

    def test_preserves_left_order_and_index(self, batted_balls, parks) -> None:
        joined = join_tables(batted_balls, parks, key="park")
        assert joined.index.equals(batted_balls.index)
        assert joined["bip_id"].tolist() == batted_balls["bip_id"].tolist()

    def test_duplicate_right_key_is_fatal(self, batted_balls, parks) -> None:
        doubled = pd.concat([parks, parks.iloc[[0]]])
        with pytest.raises(pd.errors.MergeError):
            join_tables(batted_balls, doubled, key="park")

    def test_missing_key_is_fatal(self, batted_balls, parks) -> None:
        with pytest.raises(KeyError):
            join_tables(batted_balls, parks.drop(columns="park"), key="park")


class TestProfileTable:
    def test_views(self, joined) -> None:
        profile = profile_table(joined, n=3)

        assert len(profile["head"]) == 3
        structure = profile["structure"].set_index("column")
        assert len(structure) == len(joined.columns)
        assert structure.loc["launch_speed", "missing"] == 10
        assert structure.loc["launch_speed", "non_null"] == len(joined) - 10
        assert structure.loc["park", "distinct"] == 4
        assert "mean" in profile["summary"].columns

    def test_does_not_modify_input(self, joined) -> None:
        before = joined.copy()
        profile_table(joined)
        pd.testing.assert_frame_equal(joined, before)


class TestStratifiedSplit:
    def test_same_seed_same_partition(self, joined) -> None:
        train_a, test_a = stratified_split(joined, 0.85, "is_home_run", 494)
        train_b, test_b = stratified_split(joined, 0.85, "is_home_run", 494)
        assert train_a.index.equals(train_b.index)
        assert test_a.index.equals(test_b.index)

    def test_disjoint_and_complete(self, joined) -> None:
        train, test = stratified_split(joined, 0.85, "is_home_run", 494)
        assert set(train.index).isdisjoint(test.index)
        assert set(train.index) | set(test.index) == set(joined.index)
        assert len(train) + len(test) == len(joined)

    def test_preserves_label_proportions(self, joined) -> None:
        train, test = stratified_split(joined, 0.85, "is_home_run", 494)
        overall = joined["is_home_run"].mean()
        assert abs(train["is_home_run"].mean() - overall) < 1 / len(train)
        assert abs(test["is_home_run"].mean() - overall) < 1 / len(test)

    def test_ten_row_eighty_twenty(self) -> None:
        df = pd.DataFrame({"x": range(10), "label": [1, 1] + [0] * 8})

        train, test = stratified_split(df, 0.8, "label", 42)

        assert len(train) == 8
        assert len(test) == 2
        assert train["label"].sum() in (1, 2)
        assert train["label"].sum() + test["label"].sum() == 2

    def test_different_seed_changes_partition(self, joined) -> None:
        train_a, _ = stratified_split(joined, 0.85, "is_home_run", 1)
        train_b, _ = stratified_split(joined, 0.85, "is_home_run", 2)
        assert set(train_a.index) != set(train_b.index)

    @pytest.mark.parametrize("fraction", [0.0, 1.0, 1.5])
    def test_fraction_out_of_range(self, joined, fraction) -> None:
        with pytest.raises(ValueError):
            stratified_split(joined, fraction, "is_home_run", 494)

    def test_missing_strata_column(self, joined) -> None:
        with pytest.raises(KeyError):
            stratified_split(joined, 0.85, "not_a_column", 494)


class TestTransformations:
    def test_filter_with_query_is_pure(self, joined) -> None:
        before = joined.copy()
        hits = filter_rows(joined, "launch_speed >= 100")

        assert (hits["launch_speed"] >= 100).all()
        assert len(hits) < len(joined)
        pd.testing.assert_frame_equal(joined, before)

    def test_filter_with_callable_and_mask(self, joined) -> None:
        by_callable = filter_rows(joined, lambda d: d["bearing"] == "left")
        by_mask = filter_rows(joined, joined["bearing"] == "left")
        pd.testing.assert_frame_equal(by_callable, by_mask)

    def test_series_mask_aligns_by_label(self, joined) -> None:
        shuffled_mask = joined.sample(frac=1, random_state=0)["bearing"] == "left"

        kept = filter_rows(joined, shuffled_mask)

        assert (kept["bearing"] == "left").all()
        assert len(kept) == (joined["bearing"] == "left").sum()
        assert kept.index.equals(joined.index[joined["bearing"] == "left"])

    def test_parent_mask_applies_to_subset(self, joined) -> None:
        subset = joined.iloc[:100]

        kept = filter_rows(subset, joined["bearing"] == "left")

        assert (kept["bearing"] == "left").all()
        assert len(kept) == (subset["bearing"] == "left").sum()

    def test_array_mask_is_positional(self, joined) -> None:
        mask = (joined["bearing"] == "left").to_numpy()
        kept = filter_rows(joined, mask)
        assert len(kept) == mask.sum()

    def test_query_resolves_caller_variables(self, joined) -> None:
        threshold = 100
        kept = filter_rows(joined, "launch_speed >= @threshold")
        assert len(kept) == (joined["launch_speed"] >= threshold).sum()
        assert (kept["launch_speed"] >= threshold).all()

    def test_query_accepts_local_dict(self, joined) -> None:
        kept = filter_rows(joined, "bearing == @side", local_dict={"side": "right"})
        assert (kept["bearing"] == "right").all()
        assert len(kept) == (joined["bearing"] == "right").sum()

    def test_filtered_copy_is_independent(self, joined) -> None:
        subset = filter_rows(joined, "bearing == 'left'")
        subset["launch_speed"] = 0.0
        assert (joined["launch_speed"] != 0.0).any()

    def test_select_is_pure(self, joined) -> None:
        before_columns = list(joined.columns)
        selected = select_columns(joined, ["launch_speed", "is_home_run"])

        assert list(selected.columns) == ["launch_speed", "is_home_run"]
        assert list(joined.columns) == before_columns

    def test_select_missing_column_is_fatal(self, joined) -> None:
        with pytest.raises(KeyError, match="exit_velo"):
            select_columns(joined, ["launch_speed", "exit_velo"])

    def test_derive_only_visible_when_captured(self, joined) -> None:
        derived = derive_column(joined, "speed_kph", lambda d: d["launch_speed"] * 1.609)

        assert "speed_kph" in derived.columns
        assert "speed_kph" not in joined.columns
        np.testing.assert_allclose(
            derived["speed_kph"].dropna(), joined["launch_speed"].dropna() * 1.609
        )

    def test_derive_can_overwrite(self, joined) -> None:
        derived = derive_column(joined, "launch_angle", lambda d: d["launch_angle"].abs())
        assert (derived["launch_angle"] >= 0).all()
        assert (joined["launch_angle"] < 0).any()

    def test_drop_missing(self, joined) -> None:
        clean = drop_missing(joined, ["launch_speed"])
        assert len(clean) == len(joined) - 10
        assert clean["launch_speed"].notna().all()
        assert joined["launch_speed"].isna().sum() == 10


class TestBattedBallFeatures:
    def test_thresholds(self) -> None:
        df = pd.DataFrame({
            "launch_speed": [94.9, 95.0, np.nan],
            "launch_angle": [7.0, 8.0, 33.0],
            "balls": [0, 3, 1],
            "strikes": [2, 2, 0],
            "batter_team": ["NYY", "BOS", "NYY"],
            "home_team": ["NYY", "NYY", "NYY"],
        })

        out = add_batted_ball_features(df)

        assert out["hard_hit"].iloc[0] == 0
        assert out["hard_hit"].iloc[1] == 1
        assert np.isnan(out["hard_hit"].iloc[2])
        assert out["sweet_spot"].tolist() == [0.0, 1.0, 0.0]
        assert out["count"].tolist() == ["0-2", "3-2", "1-0"]
        assert out["batter_is_home"].tolist() == [1, 0, 1]
        assert "hard_hit" not in df.columns

    def test_unknown_team_keeps_home_flag_null(self) -> None:
        df = pd.DataFrame({
            "batter_team": ["NYY", None, "BOS"],
            "home_team": ["NYY", "NYY", None],
        })

        out = add_batted_ball_features(df)

        assert out["batter_is_home"].iloc[0] == 1
        assert out["batter_is_home"].iloc[1:].isna().all()

    def test_skips_features_without_sources(self) -> None:
        out = add_batted_ball_features(pd.DataFrame({"launch_angle": [10.0]}))
        assert "hard_hit" not in out.columns
        assert "count" not in out.columns
        assert out["sweet_spot"].iloc[0] == 1.0
