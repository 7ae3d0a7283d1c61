# backend/wsgi.py
# Entry point for WSGI servers and the flask CLI (FLASK_APP=wsgi.py).
from setaside import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=True)
