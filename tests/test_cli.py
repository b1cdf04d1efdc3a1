import json

from blockvol import cli
from blockvol.volumes import methods


def test_list_all(cloud, driver, monkeypatch, capsys):
    driver.add_volume('vol-a', size=8, tags={'Name': 'data_1'})
    monkeypatch.setattr(methods, 'get_cloud', lambda title: cloud)
    assert cli.main(['test-cloud', 'list-all']) == 0
    volumes = json.loads(capsys.readouterr().out)
    assert volumes[0]['id'] == 'vol-a'
    assert volumes[0]['name'] == 'data_1'
    assert volumes[0]['size'] == 8
    # Connections are closed after every command.
    assert driver.connection.closed >= 1


def test_create(cloud, driver, monkeypatch, capsys):
    monkeypatch.setattr(methods, 'get_cloud', lambda title: cloud)
    assert cli.main(['test-cloud', 'create', 'SMALL_BLOCK',
                     '--location', 'z1', '-t', '5m']) == 0
    volume = json.loads(capsys.readouterr().out)
    assert volume['size'] == 10
    assert volume['status'] == 'available'


def test_error_exit_code(cloud, driver, monkeypatch, capsys):
    monkeypatch.setattr(methods, 'get_cloud', lambda title: cloud)
    assert cli.main(['test-cloud', 'detach', 'vol-x', '10.0.0.1']) == 1
    assert 'vol-x' in capsys.readouterr().err


def test_volume_ids(cloud, driver, monkeypatch, capsys):
    driver.add_volume('vol-b', attached_to='i-2', device='/dev/sdf')
    monkeypatch.setattr(methods, 'get_cloud', lambda title: cloud)
    assert cli.main(['test-cloud', 'volume-ids', '10.0.0.2']) == 0
    assert json.loads(capsys.readouterr().out) == ['vol-b']


def test_invalid_timeout(cloud, driver, monkeypatch, capsys):
    monkeypatch.setattr(methods, 'get_cloud', lambda title: cloud)
    assert cli.main(['test-cloud', 'detach', 'vol-a', '10.0.0.1',
                     '-t', 'soon']) == 1
    assert 'soon' in capsys.readouterr().err
    assert driver.total_calls == 0
