from ...constants import APP_NAME, DEFAULT_USERNAME


def seed(conn):
    # if no users exist, create the owner account and its business profile
    row = conn.execute("SELECT COUNT(*) AS n FROM users").fetchone()
    if row and row["n"] == 0:
        cur = conn.execute("""
            INSERT INTO users(username, full_name, email, is_active)
            VALUES (?, ?, ?, 1)
        """, (DEFAULT_USERNAME, "Owner", None))
        conn.execute("""
            INSERT INTO profiles(user_id, business_name, gstin, place_of_supply)
            VALUES (?, ?, NULL, NULL)
        """, (int(cur.lastrowid), APP_NAME))
