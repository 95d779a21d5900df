import re
from datetime import datetime, timezone
from bson import ObjectId
from pymongo import DESCENDING
from portal.config.database import db_instance, to_object_id


def _utcnow():
    return datetime.now(timezone.utc)


def _clean(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _parse_age(value):
    """Whole, non-negative age from a JSON number or a form string"""
    # bool is an int subclass
    if isinstance(value, bool):
        raise ValueError('Member age must be a whole number')
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError('Member age must be a whole number')
        value = int(value)
    elif isinstance(value, str):
        try:
            value = int(value)
        except ValueError:
            raise ValueError('Member age must be a whole number')
    elif not isinstance(value, int):
        raise ValueError('Member age must be a whole number')

    if value < 0:
        raise ValueError('Member age must not be negative')
    return value


class FamilyMember:
    """A member embedded in a family document; has no identity outside it"""

    FIELDS = ('name', 'relation', 'gotra', 'qualification', 'age', 'occupation')

    def __init__(self, name, relation=None, gotra=None, qualification=None,
                 age=None, occupation=None, _id=None):
        self.id = str(_id) if _id else str(ObjectId())
        self.name = name
        self.relation = relation
        self.gotra = gotra
        self.qualification = qualification
        self.age = age
        self.occupation = occupation

    @staticmethod
    def clean_fields(data, require_name=False):
        """Pick known member fields out of request data.

        Raises ValueError for a non-object payload, an age that is not a
        whole non-negative number or, when require_name is set, a missing name.
        """
        if not isinstance(data, dict):
            raise ValueError('Member details must be an object')

        fields = {}
        for field in FamilyMember.FIELDS:
            if field in data:
                fields[field] = _clean(data[field])

        if fields.get('age') is not None:
            fields['age'] = _parse_age(fields['age'])

        if require_name and not fields.get('name'):
            raise ValueError('Member name is required')

        return fields

    @staticmethod
    def from_request(data):
        return FamilyMember(**FamilyMember.clean_fields(data, require_name=True))

    @staticmethod
    def from_document(member_data):
        return FamilyMember(
            name=member_data.get('name'),
            relation=member_data.get('relation'),
            gotra=member_data.get('gotra'),
            qualification=member_data.get('qualification'),
            age=member_data.get('age'),
            occupation=member_data.get('occupation'),
            _id=member_data.get('_id')
        )

    def to_document(self):
        document = {'_id': ObjectId(self.id)}
        for field in self.FIELDS:
            document[field] = getattr(self, field)
        return document

    def to_dict(self):
        data = {'id': self.id}
        for field in self.FIELDS:
            data[field] = getattr(self, field)
        return data


class Family:
    HEAD_FIELDS = ('full_name', 'first_name', 'last_name', 'current_residence', 'native_residence')

    def __init__(self, full_name, first_name=None, last_name=None, current_residence=None,
                 native_residence=None, members=None, image_url=None, image_public_id=None,
                 _id=None, created_at=None, updated_at=None):
        self.id = str(_id) if _id else None
        self.full_name = full_name
        self.first_name = first_name
        self.last_name = last_name
        self.current_residence = current_residence
        self.native_residence = native_residence
        self.members = list(members or [])
        self.image_url = image_url  # set later by the background upload
        self.image_public_id = image_public_id
        self.created_at = created_at or _utcnow()
        self.updated_at = updated_at or self.created_at

    @staticmethod
    def clean_head_fields(data):
        """Pick known head fields out of request data"""
        return {
            field: _clean(data[field])
            for field in Family.HEAD_FIELDS
            if field in data
        }

    @staticmethod
    def from_request(data, members=None):
        """Build a new family from submitted details.

        full_name falls back to "first_name last_name" when omitted.
        """
        head = Family.clean_head_fields(data)
        if not head.get('full_name'):
            parts = [head.get('first_name'), head.get('last_name')]
            head['full_name'] = ' '.join(part for part in parts if part) or None
        if not head['full_name']:
            raise ValueError('Full name (or first and last name) is required')

        return Family(
            members=[FamilyMember.from_request(member) for member in (members or [])],
            **head
        )

    @staticmethod
    def from_document(family_data):
        return Family(
            full_name=family_data['full_name'],
            first_name=family_data.get('first_name'),
            last_name=family_data.get('last_name'),
            current_residence=family_data.get('current_residence'),
            native_residence=family_data.get('native_residence'),
            members=[FamilyMember.from_document(m) for m in family_data.get('members', [])],
            image_url=family_data.get('image_url'),
            image_public_id=family_data.get('image_public_id'),
            _id=family_data['_id'],
            created_at=family_data.get('created_at'),
            updated_at=family_data.get('updated_at')
        )

    def save(self):
        """Save family to database"""
        db = db_instance.get_db()
        family_data = {
            'full_name': self.full_name,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'current_residence': self.current_residence,
            'native_residence': self.native_residence,
            'members': [member.to_document() for member in self.members],
            'image_url': self.image_url,
            'image_public_id': self.image_public_id,
            'created_at': self.created_at,
            'updated_at': self.updated_at
        }

        if self.id:
            db.families.update_one(
                {'_id': to_object_id(self.id)},
                {'$set': family_data}
            )
        else:
            result = db.families.insert_one(family_data)
            self.id = str(result.inserted_id)

        return self

    @staticmethod
    def find_by_id(family_id):
        """Find family by ID; raises ValueError for a malformed id"""
        db = db_instance.get_db()
        family_data = db.families.find_one({'_id': to_object_id(family_id)})
        return Family.from_document(family_data) if family_data else None

    @staticmethod
    def find_all():
        """All families, newest first"""
        db = db_instance.get_db()
        cursor = db.families.find().sort('created_at', DESCENDING)
        return [Family.from_document(family_data) for family_data in cursor]

    @staticmethod
    def search(query):
        """Case-insensitive substring search over names and residences"""
        pattern = {'$regex': re.escape(query.strip()), '$options': 'i'}
        searchable = list(Family.HEAD_FIELDS) + ['members.name']

        db = db_instance.get_db()
        cursor = db.families.find(
            {'$or': [{field: pattern} for field in searchable]}
        ).sort('created_at', DESCENDING)
        return [Family.from_document(family_data) for family_data in cursor]

    def update_head(self, fields):
        """Replace head fields on this family"""
        if not fields:
            raise ValueError('No family details to update')
        if 'full_name' in fields and not fields['full_name']:
            raise ValueError('Full name cannot be empty')

        self.updated_at = _utcnow()
        db = db_instance.get_db()
        db.families.update_one(
            {'_id': to_object_id(self.id)},
            {'$set': dict(fields, updated_at=self.updated_at)}
        )
        for field, value in fields.items():
            setattr(self, field, value)
        return self

    def update_member(self, member_id, fields):
        """Replace fields of one embedded member; False when no such member"""
        if not fields:
            raise ValueError('No member details to update')
        if 'name' in fields and not fields['name']:
            raise ValueError('Member name cannot be empty')

        member_oid = to_object_id(member_id)
        update = {f'members.$.{field}': value for field, value in fields.items()}
        update['updated_at'] = _utcnow()

        db = db_instance.get_db()
        result = db.families.update_one(
            {'_id': to_object_id(self.id), 'members._id': member_oid},
            {'$set': update}
        )
        if result.matched_count == 0:
            return False

        for member in self.members:
            if member.id == str(member_oid):
                for field, value in fields.items():
                    setattr(member, field, value)
        self.updated_at = update['updated_at']
        return True

    def add_member(self, member):
        """Append a new embedded member"""
        self.updated_at = _utcnow()
        db = db_instance.get_db()
        db.families.update_one(
            {'_id': to_object_id(self.id)},
            {
                '$push': {'members': member.to_document()},
                '$set': {'updated_at': self.updated_at}
            }
        )
        self.members.append(member)
        return member

    @staticmethod
    def set_image(family_id, image_url, image_public_id):
        """Back-fill the hosted image; False when the family is gone"""
        db = db_instance.get_db()
        result = db.families.update_one(
            {'_id': to_object_id(family_id)},
            {'$set': {
                'image_url': image_url,
                'image_public_id': image_public_id,
                'updated_at': _utcnow()
            }}
        )
        return result.matched_count > 0

    def delete(self):
        """Delete family from database"""
        db = db_instance.get_db()
        result = db.families.delete_one({'_id': to_object_id(self.id)})
        return result.deleted_count > 0

    def to_dict(self):
        """Convert family to dictionary"""
        return {
            'id': self.id,
            'full_name': self.full_name,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'current_residence': self.current_residence,
            'native_residence': self.native_residence,
            'members': [member.to_dict() for member in self.members],
            'image_url': self.image_url,
            'created_at': self.created_at,
            'updated_at': self.updated_at
        }
