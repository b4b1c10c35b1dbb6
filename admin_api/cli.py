"""Admin console CLI tool (admin-api)."""

import typer

from admin_api.models.admin import AdminRole

app = typer.Typer(name="admin-api", help="Admin console CLI")
db_app = typer.Typer(help="Database management commands")
app.add_typer(db_app, name="db")


@db_app.command("create")
def db_create():
    """Create the MySQL database if it doesn't exist."""
    import pymysql
    from sqlalchemy.engine import make_url
    from admin_api.core.config import settings

    url = make_url(settings.DATABASE_URL)
    if not url.drivername.startswith("mysql"):
        typer.echo(f"Nothing to create for {url.drivername}")
        return

    conn = pymysql.connect(
        host=url.host or "localhost",
        port=url.port or 3306,
        user=url.username,
        password=url.password or "",
    )
    try:
        cursor = conn.cursor()
        cursor.execute(
            f"CREATE DATABASE IF NOT EXISTS `{url.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
        typer.echo(f"Database '{url.database}' created (or already exists)")
    finally:
        conn.close()


@db_app.command("init")
def db_init():
    """Create all tables."""
    from admin_api.db.session import init_db

    init_db()
    typer.echo("Tables created")


@db_app.command("seed")
def db_seed():
    """Seed the permission catalog, default roles and the bootstrap admins."""
    from admin_api.db.session import SessionLocal
    from admin_api.db.seeds.seed_roles import seed_roles
    from admin_api.db.seeds.seed_super_admin import seed_super_admin
    from admin_api.services.permission_service import permission_service

    db = SessionLocal()
    try:
        permissions = permission_service.seed(db)
        roles = seed_roles(db)
        admins = seed_super_admin(db)
    finally:
        db.close()
    typer.echo(f"Seeded {permissions} permissions, {roles} roles, {admins} admins")


@app.command("create-admin")
def create_admin(
    email: str = typer.Argument(..., help="Login email"),
    full_name: str = typer.Argument(..., help="Display name"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
    super_admin: bool = typer.Option(False, "--super-admin", help="Grant the super_admin legacy role"),
):
    """Create an admin account."""
    from admin_api.core.exceptions import AdminAPIError
    from admin_api.db.session import SessionLocal
    from admin_api.services.admin_service import admin_service

    db = SessionLocal()
    try:
        admin = admin_service.create_admin(
            db,
            email=email,
            password=password,
            full_name=full_name,
            role=AdminRole.super_admin if super_admin else AdminRole.admin,
            created_by="cli",
        )
    except AdminAPIError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1)
    finally:
        db.close()
    typer.echo(f"Created admin {admin.email} ({admin.id})")


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Host"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(True, help="Auto-reload"),
):
    """Start the FastAPI development server."""
    import uvicorn
    uvicorn.run("admin_api.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
