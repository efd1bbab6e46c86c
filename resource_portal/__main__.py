from . import create_app
from .models import db
from .tags import seed_default_tags

app = create_app()

if __name__ == '__main__':
    with app.app_context():
        db.create_all()
        seed_default_tags(db.session)
    app.run(debug=True)
