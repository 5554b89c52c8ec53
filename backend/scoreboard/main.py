from flask import Blueprint, current_app, jsonify, request, send_from_directory
from flask_login import login_required

from scoreboard import get_broadcaster, get_fixture_storage
from scoreboard.errors import NotFoundError, ValidationError
from scoreboard.services.registries import add_fixture, remove_fixture_file

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Live scoreboard server is running'})

@main.route('/upload-fixture', methods=['POST'])
@login_required
def upload_fixture():
    storage = get_fixture_storage()
    reference = storage.save(request.files.get('fixture'))
    try:
        fixture = add_fixture(reference, storage, get_broadcaster())
    except Exception:
        # Do not leave an orphaned image behind when the row was not saved
        remove_fixture_file(storage, reference)
        raise
    current_app.logger.info(f"[upload] fixture={fixture.id} image={reference}")
    return jsonify({
        'message': 'Fixture uploaded',
        'filename': reference,
        'fixture': fixture.to_dict(),
    }), 201

@main.route('/uploads/<path:reference>')
def uploaded_file(reference):
    storage = get_fixture_storage()
    try:
        storage.path_for(reference)
    except ValidationError:
        raise NotFoundError('File not found')
    return send_from_directory(storage.upload_folder, reference)
