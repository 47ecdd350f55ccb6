def test_socket_connect_gets_snapshot(sio_client):
    # Ensure we are connected to /ws
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')

    received = sio_client.get_received('/ws')
    names = [pkt['name'] for pkt in received]
    assert 'connected' in names
    phase = next(pkt for pkt in received if pkt['name'] == 'phaseUpdated')
    assert phase['args'][0] == {'phase': 'picking', 'timeLeft': 3}
    board = next(pkt for pkt in received if pkt['name'] == 'boardUpdated')
    assert len(board['args'][0]) == 64 * 64


def test_ping_pong(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'pong' and pkt['args'][0] == {'n': 1} for pkt in received)


def test_ticks_broadcast_phase(flask_app, sio_client, scheduler):
    sio_client.get_received('/ws')
    scheduler.tick()
    received = sio_client.get_received('/ws')
    updates = [pkt['args'][0] for pkt in received if pkt['name'] == 'phaseUpdated']
    assert {'phase': 'picking', 'timeLeft': 2} in updates


def test_final_simulation_broadcasts_winner(flask_app, sio_client, scheduler):
    sio_client.get_received('/ws')
    for _ in range(5):
        scheduler.tick()
    received = sio_client.get_received('/ws')
    names = [pkt['name'] for pkt in received]
    assert 'winner' in names
    # Start board plus three generations
    assert names.count('boardUpdated') == 4
    winner = next(pkt for pkt in received if pkt['name'] == 'winner')
    assert winner['args'][0]['winner'] == 'Tie'
