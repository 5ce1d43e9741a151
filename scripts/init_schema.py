import sys

from models.db import get_connection

TABLES = [
    """
    CREATE TABLE IF NOT EXISTS companies (
        id VARCHAR(64) PRIMARY KEY,
        name VARCHAR(255) NOT NULL,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_account (
        id INT AUTO_INCREMENT PRIMARY KEY,
        company_id VARCHAR(64) NOT NULL,
        email VARCHAR(255) NOT NULL,
        password VARCHAR(255) NOT NULL,
        employee_id VARCHAR(64) NOT NULL,
        home_location VARCHAR(512),
        office_location VARCHAR(512),
        distance_km DOUBLE,
        created_at DATETIME,
        last_login DATETIME,
        updated_at DATETIME,
        UNIQUE KEY uq_company_email (company_id, email),
        FOREIGN KEY (company_id) REFERENCES companies(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS commute_records (
        id INT AUTO_INCREMENT PRIMARY KEY,
        company_id VARCHAR(64) NOT NULL,
        user_id INT NOT NULL,
        employee_id VARCHAR(64) NOT NULL,
        date DATE NOT NULL,
        check_in_time VARCHAR(8),
        mode VARCHAR(32) NOT NULL,
        subtype VARCHAR(32),
        one_way_distance_km DOUBLE NOT NULL,
        round_trip_distance_km DOUBLE NOT NULL,
        emissions_kg DOUBLE NOT NULL,
        is_deleted BOOLEAN NOT NULL DEFAULT FALSE,
        created_at DATETIME,
        deleted_at DATETIME,
        KEY ix_commute_user (company_id, user_id),
        FOREIGN KEY (user_id) REFERENCES user_account(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS business_trips (
        id INT AUTO_INCREMENT PRIMARY KEY,
        company_id VARCHAR(64) NOT NULL,
        user_id INT NOT NULL,
        purpose VARCHAR(255),
        status ENUM('pending', 'completed') NOT NULL DEFAULT 'pending',
        total_distance_km DOUBLE,
        total_emissions_kg DOUBLE,
        is_deleted BOOLEAN NOT NULL DEFAULT FALSE,
        created_at DATETIME,
        submitted_at DATETIME,
        deleted_at DATETIME,
        KEY ix_trip_user (company_id, user_id, status),
        FOREIGN KEY (user_id) REFERENCES user_account(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS trip_segments (
        id INT AUTO_INCREMENT PRIMARY KEY,
        trip_id INT NOT NULL,
        position INT NOT NULL,
        date DATE NOT NULL,
        mode VARCHAR(32) NOT NULL,
        distance_km DOUBLE NOT NULL,
        emissions_kg DOUBLE NOT NULL,
        from_location VARCHAR(512) NOT NULL,
        to_location VARCHAR(512) NOT NULL,
        purpose VARCHAR(255),
        FOREIGN KEY (trip_id) REFERENCES business_trips(id)
    )
    """
]


def init_schema(companies=None, connect=get_connection):
    """Create the tables and register any (id, name) companies given."""
    conn = connect()
    cursor = conn.cursor()

    try:
        for statement in TABLES:
            cursor.execute(statement)

        for company_id, name in companies or []:
            cursor.execute(
                "INSERT IGNORE INTO companies (id, name) VALUES (%s, %s)",
                (company_id, name)
            )

        conn.commit()
        print(f"Schema ready, {len(companies or [])} companies registered")
    except Exception:
        conn.rollback()
        raise
    finally:
        cursor.close()
        conn.close()


if __name__ == "__main__":
    # usage: python -m scripts.init_schema [company_id:name ...]
    init_schema([tuple(arg.split(':', 1)) for arg in sys.argv[1:] if ':' in arg])
