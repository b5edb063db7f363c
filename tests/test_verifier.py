"""
Tests for the model structure verifier.
"""

from voskfetch.verifier import ModelVerifier

from conftest import write_files


class TestModelVerifier:
    """Test the ModelVerifier signature heuristic."""

    def test_acoustic_only_is_invalid(self, tmp_path):
        write_files(tmp_path, ['am/final.mdl'])
        result = ModelVerifier().verify(tmp_path)
        assert not result.valid
        assert result.matched == {'am/final.mdl'}

    def test_acoustic_with_two_supporting_groups_is_valid(self, tmp_path):
        write_files(tmp_path, ['am/final.mdl', 'graph/HCLG.fst', 'conf/model.conf'])
        result = ModelVerifier().verify(tmp_path)
        assert result.valid
        assert result.matched == {'am/final.mdl', 'graph/hclg.fst', 'conf/model.conf'}
        assert result.file_count == 3

    def test_empty_directory_is_invalid(self, tmp_path):
        assert not ModelVerifier().verify(tmp_path).valid

    def test_missing_directory_is_invalid(self, tmp_path):
        assert not ModelVerifier().verify(tmp_path / 'absent').valid

    def test_supporting_groups_without_acoustic_is_invalid(self, tmp_path):
        write_files(tmp_path, [
            'graph/HCLG.fst', 'conf/model.conf', 'ivector/final.ie', 'disambig_tid.int',
        ])
        assert not ModelVerifier().verify(tmp_path).valid

    def test_one_supporting_group_is_not_enough(self, tmp_path):
        # Two files from the same group still count once
        write_files(tmp_path, ['final.mdl', 'graph/HCLG.fst', 'Gr.fst'])
        assert not ModelVerifier().verify(tmp_path).valid

    def test_flat_layout_uses_bare_suffixes(self, tmp_path):
        write_files(tmp_path, ['final.mdl', 'mfcc.conf', 'phones.txt'])
        assert ModelVerifier().verify(tmp_path).valid

    def test_matching_is_case_insensitive(self, tmp_path):
        write_files(tmp_path, ['AM/FINAL.MDL', 'IVECTOR/Final.Dubm', 'Disambig_TID.int'])
        assert ModelVerifier().verify(tmp_path).valid

    def test_nested_paths_match_by_suffix(self, tmp_path):
        write_files(tmp_path, [
            'model/am/final.mdl', 'model/graph/HCLG.fst', 'model/conf/mfcc.conf',
        ])
        assert ModelVerifier().is_valid(tmp_path)

    def test_hidden_files_are_ignored(self, tmp_path):
        write_files(tmp_path, ['am/final.mdl', '.cache/graph/HCLG.fst', '.conf/model.conf'])
        assert not ModelVerifier().verify(tmp_path).valid

    def test_sample_is_limited(self, tmp_path):
        write_files(tmp_path, [f'extra/file{i}.bin' for i in range(25)])
        result = ModelVerifier().verify(tmp_path)
        assert not result.valid
        assert result.file_count == 25
        assert len(result.sample) == 10

    def test_evaluate_reports_groups(self):
        valid, found = ModelVerifier.evaluate({'am/final.mdl', 'graph/hclg.fst', 'ivector/final.mat'})
        assert valid
        assert set(found) == {'acoustic', 'graph', 'ivector'}

    def test_evaluate_empty_set(self):
        assert ModelVerifier.evaluate(set()) == (False, {})
