import pytest

from gamematch.config import ConfigurationError
from gamematch.match.engine import batch_match_games, match_games
from gamematch.match.ranking import (
    apply_threshold,
    assess_quality,
    batch_sort_and_filter,
    dedup_key,
    sort_and_filter,
)
from gamematch.match.scoring import MatchConfidence


RICH_TETRIS = {
    'id': 'rich',
    'title': 'Tetris',
    'description': 'Falling block puzzle game where every player clears lines for score.',
    'tags': ['puzzle', 'classic', 'arcade', 'blocks', 'retro'],
}
BARE_TETRIS = {'id': 'bare', 'title': 'Tetris'}


def _all(query, games):
    return match_games(query, games, {'threshold': 0.0, 'max_results': 100})


def test_assess_quality_of_complete_record(mock_games):
    quality = assess_quality(mock_games[0])
    assert quality.dimension_scores['completeness'] == pytest.approx(1.0)
    assert quality.dimension_scores['tag_richness'] == pytest.approx(0.4)
    assert quality.dimension_scores['description_quality'] == pytest.approx(0.755)
    assert quality.overall == pytest.approx(0.78875)
    assert quality.level is MatchConfidence.GOOD
    assert quality.suggestions == ['Add more relevant tags']


def test_assess_quality_of_bare_record():
    quality = assess_quality(BARE_TETRIS)
    assert quality.overall == pytest.approx(0.5 * 0.3 / 0.7)
    assert quality.level is MatchConfidence.POOR
    assert len(quality.suggestions) == 3
    assert quality.to_dict()['level'] == 'poor'


def test_assess_quality_accepts_match_result():
    result = _all('Tetris', [RICH_TETRIS])[0]
    quality = assess_quality(result)
    assert quality.overall == pytest.approx(1.0)
    assert quality.suggestions == []


def test_apply_threshold_needs_similarity_and_quality():
    results = _all('Tetris', [BARE_TETRIS, RICH_TETRIS])
    assert [r.game['id'] for r in apply_threshold(results, 0.5)] == ['rich']
    assert len(apply_threshold(results, 0.5, {'min_quality': 0.0})) == 2
    with pytest.raises(ConfigurationError):
        apply_threshold(results, 1.5)


def test_rerank_prefers_richer_record():
    results = _all('Tetris', [BARE_TETRIS, RICH_TETRIS])
    assert [r.game['id'] for r in results] == ['bare', 'rich']

    ranked, stats = sort_and_filter(results)
    assert [r.result.game['id'] for r in ranked] == ['rich', 'bare']
    assert ranked[0].final_score > ranked[1].final_score
    assert set(ranked[0].dimension_scores) == {'similarity', 'quality', 'completeness'}
    assert 'high quality score (1.00)' in ranked[0].reasons
    assert ranked[0].reasons[-1].startswith('rank 1, final score')
    assert stats.original_count == 2
    assert stats.final_count == 2
    assert stats.dimension_weights == {'similarity': 0.5, 'quality': 0.3, 'completeness': 0.2}


def test_similarity_only_weights_keep_engine_order():
    results = _all('Tetris', [BARE_TETRIS, RICH_TETRIS])
    weights = {'similarity': 1.0, 'quality': 0.0, 'completeness': 0.0}
    ranked, _ = sort_and_filter(results, {'dimension_weights': weights})
    assert [r.result.game['id'] for r in ranked] == ['bare', 'rich']
    assert ranked[0].final_score == pytest.approx(1.0)


def test_dedup_strategies():
    games = [
        {'id': 1, 'title': 'Tetris'},
        {'id': 2, 'title': 'TETRIS'},
        {'id': 3, 'title': 'Tetris', 'description': 'Falling blocks on the Game Boy'},
    ]
    results = _all('Tetris', games)

    ranked, stats = sort_and_filter(results, {'dedup_strategy': 'title'})
    assert [r.result.game['id'] for r in ranked] == [1]
    assert stats.duplicates_removed == 2
    assert stats.duplicate_groups == 1
    assert 'best of 3 similar results' in ranked[0].reasons

    ranked, stats = sort_and_filter(results)
    assert sorted(r.result.game['id'] for r in ranked) == [1, 3]
    assert stats.after_dedup_count == 2

    ranked, stats = sort_and_filter(results, {'deduplicate': False})
    assert len(ranked) == 3
    assert stats.duplicates_removed == 0
    assert all(r.dedup_key is None for r in ranked)


def test_dedup_by_id():
    results = _all('Tetris', [{'id': 7, 'title': 'Tetris'}, {'id': 7, 'title': 'Tetris Deluxe'}])
    ranked, _ = sort_and_filter(results, {'dedup_strategy': 'id'})
    assert [r.result.game['title'] for r in ranked] == ['Tetris']


def test_dedup_keys():
    exact, dotted = _all('Super Mario Bros 3', [
        {'id': 1, 'title': 'Super Mario Bros 3'},
        {'id': 2, 'title': 'Super Mario Bros. 3'},
    ])
    assert dedup_key(exact, 'similarity') == 'super mario bros 3_1.0'
    assert dedup_key(exact, 'title') != dedup_key(dotted, 'title')
    assert dedup_key(exact, 'normalized') == dedup_key(dotted, 'normalized')
    with pytest.raises(ConfigurationError):
        dedup_key(exact, 'fuzzy')


def test_weak_and_short_titles_are_dropped():
    results = _all('X', [{'id': 'x', 'title': 'X'}, {'id': 't', 'title': 'Tetris'}])
    ranked, stats = sort_and_filter(results)
    assert ranked == []
    assert stats.original_count == 2
    assert stats.final_count == 0
    assert stats.avg_similarity == 0.0


def test_top_n_and_stats(mock_games):
    results = _all('Mario', mock_games)
    ranked, stats = sort_and_filter(results, {'top_n': 1, 'min_similarity': 0.0})
    assert len(ranked) == 1
    assert stats.final_count == 1
    assert stats.avg_similarity == pytest.approx(ranked[0].similarity)
    assert stats.avg_quality == pytest.approx(ranked[0].quality_score)
    assert stats.to_dict()['original_count'] == len(results)


def test_results_are_not_mutated(mock_games):
    results = _all('classic game', mock_games)
    before = [(r.game['id'], r.similarity) for r in results]
    sort_and_filter(results, {'dedup_strategy': 'title'})
    assert [(r.game['id'], r.similarity) for r in results] == before


def test_ranked_result_to_dict(mock_games):
    ranked, _ = sort_and_filter(match_games('Super Mario Bros', mock_games))
    data = ranked[0].to_dict()
    assert data['game']['id'] == 'game1'
    assert {'final_score', 'quality_score', 'dimension_scores', 'reasons', 'similarity'} <= set(data)


def test_batch_sort_and_filter(mock_games):
    grouped = batch_match_games(['Tetris', 'Mario'], mock_games, {'threshold': 0.0})
    out = batch_sort_and_filter(grouped, {'top_n': 2})
    assert list(out) == ['Tetris', 'Mario']
    for ranked, stats in out.values():
        assert len(ranked) <= 2
        assert stats.final_count == len(ranked)

    with pytest.raises(ConfigurationError) as exc:
        batch_sort_and_filter(grouped, {'top_n': 0})
    assert exc.value.section == 'ranking'
