import os
from dotenv import load_dotenv

# Load environment variables before the config class reads them
load_dotenv()

from marketplace import create_app, db  # noqa: E402
from marketplace.services.auth_service import AuthService  # noqa: E402

# Create app instance
app = create_app()


@app.cli.command()
def init_db():
    """Initialize database"""
    db.create_all()
    print('Database initialized successfully!')


@app.cli.command()
def drop_db():
    """Drop all tables"""
    if input('Are you sure you want to drop all tables? (yes/no): ') == 'yes':
        db.drop_all()
        print('Database dropped successfully!')
    else:
        print('Operation cancelled')


@app.cli.command()
def create_admin():
    """Create admin user"""
    email = input('Admin email: ')
    username = input('Admin username: ')
    password = input('Admin password: ')

    try:
        admin = AuthService.create_admin(email, username, password)
    except ValueError as e:
        print(e)
        return

    print(f'Admin user {admin.username} created successfully!')


if __name__ == '__main__':
    app.run(
        host=os.getenv('HOST', '0.0.0.0'),
        port=int(os.getenv('PORT', 5000)),
        debug=os.getenv('DEBUG', 'True') == 'True'
    )
