from models.db import get_connection


class CompanyStore:
    def __init__(self, connect=get_connection):
        self.connect = connect

    def exists(self, company_id):
        if not company_id:
            return False
        conn = self.connect()
        cursor = conn.cursor()
        cursor.execute("SELECT 1 FROM companies WHERE id = %s", (company_id,))
        row = cursor.fetchone()
        cursor.close()
        conn.close()
        return row is not None
