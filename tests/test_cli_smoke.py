import json
from pathlib import Path

from click.testing import CliRunner

from gamematch.cli import cli
from gamematch.version import __version__


def test_cli_version():
    runner = CliRunner()
    result = runner.invoke(cli, ['--version'])
    assert result.exit_code == 0
    assert 'gamematch' in result.output
    assert __version__ in result.output


def test_match_json_output(candidates_file: Path):
    runner = CliRunner()
    result = runner.invoke(cli, ['match', 'Super Mario Bros', '-c', str(candidates_file), '--json'])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert [r['game']['id'] for r in payload] == ['game1']
    assert payload[0]['confidence'] in {'excellent', 'good'}
    assert set(payload[0]['scores']) == {'levenshtein', 'cosine', 'jaccard', 'normalized'}


def test_match_styled_output(candidates_file: Path):
    runner = CliRunner()
    result = runner.invoke(cli, ['match', 'Mario', '-c', str(candidates_file), '--threshold', '0.2'])
    assert result.exit_code == 0, result.output
    assert 'Super Mario Bros' in result.output
    assert 'Super Mario World' in result.output
    assert 'Tetris' not in result.output


def test_match_no_results(candidates_file: Path):
    runner = CliRunner()
    result = runner.invoke(cli, ['match', 'xyzzy', '-c', str(candidates_file)])
    assert result.exit_code == 0
    assert 'No matches' in result.output


def test_match_invalid_threshold_exits_2(candidates_file: Path):
    runner = CliRunner()
    result = runner.invoke(cli, ['match', 'Mario', '-c', str(candidates_file), '--threshold', '1.5'])
    assert result.exit_code == 2
    assert 'threshold' in result.output


def test_match_bad_candidate_file(tmp_path: Path):
    bad = tmp_path / 'bad.json'
    bad.write_text(json.dumps([{'id': 1, 'description': 'no title'}]), encoding='utf-8')
    runner = CliRunner()
    result = runner.invoke(cli, ['match', 'Mario', '-c', str(bad)])
    assert result.exit_code == 1
    assert 'entry 0' in result.output


def test_batch_json_output(candidates_file: Path, tmp_path: Path):
    queries = tmp_path / 'queries.txt'
    queries.write_text('Tetris Block Puzzle\n\nxyzzy\n', encoding='utf-8')
    runner = CliRunner()
    result = runner.invoke(cli, [
        'batch', 'Super Mario Bros', '-c', str(candidates_file),
        '--queries', str(queries), '--workers', '2', '--json',
    ])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert list(payload) == ['Super Mario Bros', 'Tetris Block Puzzle', 'xyzzy']
    assert payload['xyzzy'] == []
    assert payload['Super Mario Bros'][0]['game']['id'] == 'game1'


def test_batch_summary_line(candidates_file: Path):
    runner = CliRunner()
    result = runner.invoke(cli, ['batch', 'Super Mario Bros', 'xyzzy', '-c', str(candidates_file)])
    assert result.exit_code == 0, result.output
    assert '1 matched' in result.output
    assert '1 unmatched' in result.output


def test_batch_requires_queries(candidates_file: Path):
    runner = CliRunner()
    result = runner.invoke(cli, ['batch', '-c', str(candidates_file)])
    assert result.exit_code == 2


def test_normalize_command():
    runner = CliRunner()
    result = runner.invoke(cli, ['normalize', 'Super Mario Bros. 3', '--json'])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload[0]['normalized'] == 'mario bros three'


def test_config_show_and_check(monkeypatch):
    runner = CliRunner()
    result = runner.invoke(cli, ['config', '--section', 'matching'])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output)['matching']['threshold'] == 0.6

    result = runner.invoke(cli, ['config', '--check'])
    assert result.exit_code == 0
    assert 'valid' in result.output

    monkeypatch.setenv('GAMEMATCH__MATCHING__THRESHOLD', '2')
    result = runner.invoke(cli, ['config', '--check'])
    assert result.exit_code == 1
    assert 'threshold' in result.output


def test_env_config_reaches_match(candidates_file: Path, monkeypatch):
    monkeypatch.setenv('GAMEMATCH__MATCHING__THRESHOLD', '0.2')
    runner = CliRunner()
    result = runner.invoke(cli, ['match', 'Mario', '-c', str(candidates_file), '--json'])
    assert result.exit_code == 0, result.output
    assert len(json.loads(result.output)) == 2


def test_match_rerank_json(candidates_file: Path):
    runner = CliRunner()
    result = runner.invoke(cli, ['match', 'Mario', '-c', str(candidates_file), '--threshold', '0.2', '--rerank', '--json'])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert {r['game']['id'] for r in payload['results']} == {'game1', 'game4'}
    assert payload['stats']['original_count'] == 2
    assert 'final_score' in payload['results'][0]


def test_match_rerank_styled_and_invalid_ranking(candidates_file: Path, monkeypatch):
    runner = CliRunner()
    result = runner.invoke(cli, ['match', 'Mario', '-c', str(candidates_file), '--threshold', '0.2', '--rerank'])
    assert result.exit_code == 0, result.output
    assert 'Re-ranked' in result.output
    assert 'quality=' in result.output

    monkeypatch.setenv('GAMEMATCH__RANKING__DEDUP_STRATEGY', 'fuzzy')
    result = runner.invoke(cli, ['match', 'Mario', '-c', str(candidates_file), '--rerank'])
    assert result.exit_code == 2
    assert 'dedup_strategy' in result.output

    result = runner.invoke(cli, ['config', '--check'])
    assert result.exit_code == 1
    assert 'ranking: dedup_strategy' in result.output


def test_config_ranking_section():
    runner = CliRunner()
    result = runner.invoke(cli, ['config', '--section', 'ranking'])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output)['ranking']['dedup_strategy'] == 'content'
