"""
Database connection and table management.
Uses mysql-connector-python with parameterized queries to prevent SQL injection.

The module itself is the application's store: create_app() installs it as
app.extensions['store'] unless another object with the same functions is given.
"""

import mysql.connector
from mysql.connector import Error
from contextlib import contextmanager

from config import DB_CONFIG


class DatabaseError(Exception):
    """Raised when the MySQL server rejects a connection or statement."""


@contextmanager
def get_db_connection():
    """
    Context manager for database connections.
    Ensures proper connection cleanup.
    """
    conn = None
    try:
        conn = mysql.connector.connect(**DB_CONFIG)
        yield conn
    except Error as e:
        raise DatabaseError(f"Database error: {e}") from e
    finally:
        if conn and conn.is_connected():
            conn.close()


def init_database():
    """
    Create database and tables if they don't exist.
    """
    config_no_db = {k: v for k, v in DB_CONFIG.items() if k != 'database'}

    try:
        conn = mysql.connector.connect(**config_no_db)
        cursor = conn.cursor()
        cursor.execute(f"CREATE DATABASE IF NOT EXISTS `{DB_CONFIG['database']}`")
        conn.commit()
        cursor.close()
        conn.close()
    except Error as e:
        raise DatabaseError(f"Failed to create database: {e}") from e

    with get_db_connection() as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id INT AUTO_INCREMENT PRIMARY KEY,
                username VARCHAR(100) UNIQUE NOT NULL,
                email VARCHAR(150) UNIQUE NOT NULL,
                password_hash VARCHAR(255) NOT NULL
            )
        """)

        # Owner is fixed at creation; grams go away with their user
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS grams (
                id INT AUTO_INCREMENT PRIMARY KEY,
                message TEXT NOT NULL,
                picture VARCHAR(255) NULL,
                user_id INT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
            )
        """)

        conn.commit()
        cursor.close()


# --- User operations ---

def get_user_by_id(user_id):
    """Fetch user by ID. Returns dict or None."""
    with get_db_connection() as conn:
        cursor = conn.cursor(dictionary=True)
        cursor.execute(
            "SELECT id, username, email, password_hash FROM users WHERE id = %s",
            (user_id,)
        )
        row = cursor.fetchone()
        cursor.close()
        return row


def get_user_by_username(username):
    """Fetch user by username. Returns dict or None."""
    with get_db_connection() as conn:
        cursor = conn.cursor(dictionary=True)
        cursor.execute(
            "SELECT id, username, email, password_hash FROM users WHERE username = %s",
            (username,)
        )
        row = cursor.fetchone()
        cursor.close()
        return row


def get_user_by_email(email):
    """Fetch user by email. Returns dict or None."""
    with get_db_connection() as conn:
        cursor = conn.cursor(dictionary=True)
        cursor.execute(
            "SELECT id, username, email, password_hash FROM users WHERE email = %s",
            (email,)
        )
        row = cursor.fetchone()
        cursor.close()
        return row


def create_user(username, email, password_hash):
    """Create new user. Returns user ID."""
    with get_db_connection() as conn:
        cursor = conn.cursor()
        cursor.execute(
            """
            INSERT INTO users (username, email, password_hash)
            VALUES (%s, %s, %s)
            """,
            (username, email, password_hash)
        )
        conn.commit()
        user_id = cursor.lastrowid
        cursor.close()
        return user_id


# --- Gram operations ---

def insert_gram(message, user_id, picture=None):
    """Insert a gram owned by user_id. Returns gram ID."""
    with get_db_connection() as conn:
        cursor = conn.cursor()
        cursor.execute(
            "INSERT INTO grams (message, picture, user_id) VALUES (%s, %s, %s)",
            (message, picture, user_id)
        )
        conn.commit()
        gram_id = cursor.lastrowid
        cursor.close()
        return gram_id


def get_gram_by_id(gram_id):
    """Fetch gram by ID, with its owner's username. Returns dict or None."""
    with get_db_connection() as conn:
        cursor = conn.cursor(dictionary=True)
        cursor.execute(
            """
            SELECT g.id, g.message, g.picture, g.user_id, g.created_at, u.username
            FROM grams g JOIN users u ON g.user_id = u.id
            WHERE g.id = %s
            """,
            (gram_id,)
        )
        row = cursor.fetchone()
        cursor.close()
        return row


def get_all_grams():
    """Fetch all grams, newest first."""
    with get_db_connection() as conn:
        cursor = conn.cursor(dictionary=True)
        cursor.execute(
            """
            SELECT g.id, g.message, g.picture, g.user_id, g.created_at, u.username
            FROM grams g JOIN users u ON g.user_id = u.id
            ORDER BY g.created_at DESC, g.id DESC
            """
        )
        rows = cursor.fetchall()
        cursor.close()
        return rows


def update_gram_message(gram_id, message):
    """Update a gram's message. Owner is never changed here."""
    with get_db_connection() as conn:
        cursor = conn.cursor()
        cursor.execute(
            "UPDATE grams SET message = %s WHERE id = %s",
            (message, gram_id)
        )
        conn.commit()
        cursor.close()


def delete_gram(gram_id):
    """Delete a gram by ID."""
    with get_db_connection() as conn:
        cursor = conn.cursor()
        cursor.execute("DELETE FROM grams WHERE id = %s", (gram_id,))
        conn.commit()
        cursor.close()
