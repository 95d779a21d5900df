import json
import logging
from flask import Blueprint, request, jsonify, current_app
from portal.models.family import Family, FamilyMember
from portal.utils.auth_middleware import admin_required, validate_json_data
from portal.utils.file_handler import FileHandler
from portal.utils.image_host import ImageHost, public_id_from_url

logger = logging.getLogger(__name__)

family_bp = Blueprint('family', __name__)

UPDATE_TICKETS = ('head', 'member', 'new_member')


def get_image_host():
    return ImageHost.from_config(current_app.config)


def get_background_runner():
    return current_app.extensions['background_runner']


def _request_data():
    """Submitted fields from a JSON body or a multipart form"""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def _parse_members(raw):
    if raw in (None, ''):
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            raise ValueError('Members must be a JSON list')
    if not isinstance(raw, list):
        raise ValueError('Members must be a list')
    return raw


def upload_family_image(family_id, file_path):
    """Upload a family photo and back-fill the record with its URL.

    Runs after the response has been sent, so failures are only logged.
    """
    file_handler = FileHandler(current_app.config['UPLOAD_FOLDER'])
    try:
        image_url, public_id = get_image_host().upload(file_path)
        if not Family.set_image(family_id, image_url, public_id):
            # Family was deleted before the upload finished
            logger.warning("Family %s gone before image back-fill, removing %s", family_id, public_id)
            get_image_host().delete(public_id)
            return
        logger.info("Image attached to family %s", family_id)
    finally:
        file_handler.cleanup_file(file_path)


def delete_family_image(public_id):
    get_image_host().delete(public_id)


@family_bp.route('/login', methods=['POST'])
@admin_required
def login():
    """Check admin credentials"""
    return jsonify({'message': 'Login successful'}), 200


@family_bp.route('/submit-details', methods=['POST'])
@admin_required
def submit_details():
    """Create a family; its photo is uploaded in the background"""
    file_path = None
    try:
        data = _request_data()
        family = Family.from_request(data, members=_parse_members(data.get('members')))

        image = request.files.get('image')
        if image and image.filename:
            file_handler = FileHandler(current_app.config['UPLOAD_FOLDER'])
            file_path = file_handler.save_file(image)

        family.save()
        logger.info("Created family %s", family.id)

        if file_path:
            get_background_runner().submit(upload_family_image, family.id, file_path)

        return jsonify({
            'message': 'Family details submitted successfully',
            'family': family.to_dict()
        }), 201

    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.exception("Submit failed")
        if file_path:
            FileHandler(current_app.config['UPLOAD_FOLDER']).cleanup_file(file_path)
        return jsonify({'error': f'Failed to submit details: {str(e)}'}), 500


@family_bp.route('/get-family-details', methods=['GET'])
@admin_required
def get_families():
    """List all families, newest first"""
    try:
        families = Family.find_all()
        return jsonify({'families': [family.to_dict() for family in families]}), 200

    except Exception as e:
        logger.exception("Listing families failed")
        return jsonify({'error': f'Failed to get families: {str(e)}'}), 500


@family_bp.route('/get-family-details/<family_id>', methods=['GET'])
@admin_required
def get_family(family_id):
    """Get one family"""
    try:
        family = Family.find_by_id(family_id)
        if not family:
            return jsonify({'error': 'Family not found'}), 404
        return jsonify({'family': family.to_dict()}), 200

    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.exception("Fetching family %s failed", family_id)
        return jsonify({'error': f'Failed to get family: {str(e)}'}), 500


@family_bp.route('/search-family-details', methods=['POST'])
@admin_required
@validate_json_data(['query'])
def search_families():
    """Search families by name or residence"""
    try:
        query = request.get_json()['query']
        if not isinstance(query, str) or not query.strip():
            return jsonify({'error': 'Search query cannot be empty'}), 400

        families = Family.search(query)
        return jsonify({'families': [family.to_dict() for family in families]}), 200

    except Exception as e:
        logger.exception("Search failed")
        return jsonify({'error': f'Search failed: {str(e)}'}), 500


@family_bp.route('/update-family-member', methods=['POST'])
@admin_required
@validate_json_data(['ticket', 'family_id'])
def update_family():
    """Update head details, one member, or add a member, chosen by `ticket`"""
    try:
        data = request.get_json()
        ticket = data['ticket']
        if ticket not in UPDATE_TICKETS:
            return jsonify({
                'error': f"Unknown ticket, expected one of: {', '.join(UPDATE_TICKETS)}"
            }), 400

        family = Family.find_by_id(data['family_id'])
        if not family:
            return jsonify({'error': 'Family not found'}), 404

        if ticket == 'head':
            family.update_head(Family.clean_head_fields(data))
            message = 'Family details updated successfully'

        elif ticket == 'member':
            if not data.get('member_id'):
                return jsonify({'error': 'Missing required fields: member_id'}), 400
            fields = FamilyMember.clean_fields(data.get('member'))
            if not family.update_member(data['member_id'], fields):
                return jsonify({'error': 'Family member not found'}), 404
            message = 'Family member updated successfully'

        else:
            family.add_member(FamilyMember.from_request(data.get('member')))
            message = 'Family member added successfully'

        return jsonify({'message': message, 'family': family.to_dict()}), 200

    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.exception("Update failed")
        return jsonify({'error': f'Update failed: {str(e)}'}), 500


@family_bp.route('/api/family/delete', methods=['DELETE'])
@admin_required
@validate_json_data(['family_id'])
def delete_family():
    """Delete a family and, in the background, its hosted photo"""
    try:
        family = Family.find_by_id(request.get_json()['family_id'])
        if not family:
            return jsonify({'error': 'Family not found'}), 404

        family.delete()
        logger.info("Deleted family %s", family.id)

        public_id = family.image_public_id or public_id_from_url(family.image_url)
        if public_id:
            get_background_runner().submit(delete_family_image, public_id)
        elif family.image_url:
            logger.warning("Cannot derive image id for family %s from %s", family.id, family.image_url)

        return jsonify({'message': 'Family deleted successfully'}), 200

    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.exception("Delete failed")
        return jsonify({'error': f'Delete failed: {str(e)}'}), 500
