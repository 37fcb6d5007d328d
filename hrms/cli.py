"""HRMS access CLI tool (hrmsctl)."""

import typer

app = typer.Typer(name="hrmsctl", help="HRMS access engine CLI")
db_app = typer.Typer(help="Database management commands")
roles_app = typer.Typer(help="Role table and assignments")
app.add_typer(db_app, name="db")
app.add_typer(roles_app, name="roles")


@db_app.command("create")
def db_create():
    """Create the MySQL database if it doesn't exist."""
    import pymysql
    from sqlalchemy.engine import make_url
    from hrms.core.config import settings

    url = make_url(settings.DATABASE_URL)
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
    from hrms.db.session import init_db

    init_db()
    typer.echo("Tables created")


@db_app.command("seed")
def db_seed():
    """Seed roles and the super-admin user."""
    from hrms.db.session import SessionLocal
    from hrms.db.seeds.seed_roles import seed_roles
    from hrms.db.seeds.seed_super_admin import seed_super_admin

    db = SessionLocal()
    try:
        count = seed_roles(db)
        admin = seed_super_admin(db)
    finally:
        db.close()
    typer.echo(f"Seeded {count} roles; super admin is user {admin.id}")


@roles_app.command("list")
def roles_list():
    """Print the role table."""
    from hrms.services.role_registry import get_registry

    for role in get_registry().roles():
        perms = ", ".join(sorted(role.permissions))
        typer.echo(f"  [{role.level}] {role.name}: {perms}")


@roles_app.command("assign")
def roles_assign(
    user_id: int = typer.Argument(..., help="User ID"),
    role_name: str = typer.Argument(..., help="Role to make active"),
):
    """Replace a user's active role."""
    from hrms.core.exceptions import HRMSError
    from hrms.db.session import SessionLocal
    from hrms.services.audit_service import SqlAuditSink
    from hrms.services.role_service import RoleService
    from hrms.services.stores import SqlOrgDirectory, SqlUserRoleStore

    db = SessionLocal()
    try:
        service = RoleService(SqlUserRoleStore(db), SqlOrgDirectory(db), SqlAuditSink(db))
        ctx = service.assign_role(user_id, role_name)
    except HRMSError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1)
    finally:
        db.close()
    typer.echo(f"User {ctx.user_id} is now '{ctx.role_name}' (level {ctx.hierarchy_level})")


@app.command("token")
def token(
    user_id: int = typer.Argument(..., help="User ID to put in the 'sub' claim"),
    minutes: int = typer.Option(60, help="Lifetime in minutes"),
):
    """Mint a development bearer token."""
    from datetime import timedelta
    from hrms.core.security import create_access_token

    typer.echo(create_access_token({"sub": str(user_id)}, timedelta(minutes=minutes)))


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Host"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(True, help="Auto-reload"),
):
    """Start the FastAPI development server."""
    import uvicorn
    uvicorn.run("hrms.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
