from flask import Blueprint, current_app, jsonify, session

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({
        'message': 'Welcome to the mazechat server!',
        'socket_namespace': current_app.config.get('SOCKETIO_NAMESPACE', '/ws'),
    })


@main.route('/session')
def whoami():
    game_server = current_app.extensions['game_server']
    member = game_server.registry.lookup(session['id'])
    return jsonify({
        'identity': session['id'],
        'member': member.to_dict() if member else None,
    })
