import logging
import os

from detailquote import create_app

# Flask-Migrate is registered by the factory: `flask --app run db upgrade`
app = create_app()

if __name__ == "__main__":
    port = int(os.getenv("PORT", "5000"))
    if not app.config.get("RESEND_API_KEY"):
        logging.getLogger(__name__).warning("RESEND_API_KEY is not set; sending quotes will fail")
    app.run(host="0.0.0.0", port=port, debug=app.debug)
