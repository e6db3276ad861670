from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Hextris relay server!'})


@main.route('/health')
def health():
    manager = current_app.extensions['relay']
    return jsonify({'status': 'ok', 'rooms': manager.room_count()})
