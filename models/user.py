from datetime import datetime

import pytz

from models.db import get_connection

PROFILE_FIELDS = ('email', 'employee_id', 'home_location', 'office_location', 'distance_km')


class User:
    def __init__(self, id, company_id, email, password, employee_id, home_location=None,
                 office_location=None, distance_km=None, created_at=None, last_login=None, updated_at=None):
        self.id = id
        self.company_id = company_id
        self.email = email
        self.password = password
        self.employee_id = employee_id
        self.home_location = home_location
        self.office_location = office_location
        self.distance_km = distance_km
        self.created_at = created_at
        self.last_login = last_login
        self.updated_at = updated_at

    def to_profile(self):
        return {
            'id': self.id,
            'company_id': self.company_id,
            'email': self.email,
            'employee_id': self.employee_id,
            'home_location': self.home_location,
            'office_location': self.office_location,
            'distance_km': self.distance_km,
            'created_at': self.created_at,
            'last_login': self.last_login,
            'updated_at': self.updated_at
        }


class UserStore:
    """Accounts and profiles, namespaced by company."""

    def __init__(self, connect=get_connection):
        self.connect = connect

    def create(self, company_id, email, password, employee_id, home_location=None,
               office_location=None, distance_km=None):
        now = datetime.now(pytz.utc)
        conn = self.connect()
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO user_account (company_id, email, password, employee_id, home_location,
                                      office_location, distance_km, created_at, last_login)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
        """, (company_id, email, password, employee_id, home_location, office_location, distance_km, now, now))
        user_id = cursor.lastrowid
        conn.commit()
        cursor.close()
        conn.close()
        return user_id

    def find_by_email(self, company_id, email):
        conn = self.connect()
        cursor = conn.cursor(dictionary=True)
        cursor.execute(
            "SELECT * FROM user_account WHERE company_id = %s AND email = %s",
            (company_id, email)
        )
        data = cursor.fetchone()
        cursor.close()
        conn.close()
        if data:
            return User(**data)
        return None

    def get_profile(self, company_id, user_id):
        conn = self.connect()
        cursor = conn.cursor(dictionary=True)
        cursor.execute(
            "SELECT * FROM user_account WHERE company_id = %s AND id = %s",
            (company_id, user_id)
        )
        data = cursor.fetchone()
        cursor.close()
        conn.close()
        if data:
            return User(**data).to_profile()
        return None

    def update_profile(self, company_id, user_id, changes):
        """Update only the profile fields present in changes."""
        fields = [f for f in PROFILE_FIELDS if f in changes]
        assignments = ", ".join(f"{f} = %s" for f in fields + ['updated_at'])
        values = [changes[f] for f in fields] + [datetime.now(pytz.utc), company_id, user_id]

        conn = self.connect()
        cursor = conn.cursor()
        cursor.execute(
            f"UPDATE user_account SET {assignments} WHERE company_id = %s AND id = %s",
            tuple(values)
        )
        updated = cursor.rowcount > 0
        conn.commit()
        cursor.close()
        conn.close()
        return updated

    def touch_last_login(self, company_id, user_id):
        conn = self.connect()
        cursor = conn.cursor()
        cursor.execute(
            "UPDATE user_account SET last_login = %s WHERE company_id = %s AND id = %s",
            (datetime.now(pytz.utc), company_id, user_id)
        )
        conn.commit()
        cursor.close()
        conn.close()
