import io
import os
import uuid

from flask import Flask, request, jsonify, send_file
from flask_cors import CORS
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.utils import secure_filename

from huffman import HuffmanError
from Text_Compression import compress_file, decompress_file

# -----------------------------------------------------------
# PATH CONFIGURATION
# -----------------------------------------------------------
BASE_DIR = os.path.abspath(os.path.dirname(__file__))
UPLOAD_DIR = os.environ.get("HUFFMAN_UPLOAD_DIR", os.path.join(BASE_DIR, "uploads"))
MAX_UPLOAD_MB = int(os.environ.get("HUFFMAN_MAX_UPLOAD_MB", "16"))
PORT = int(os.environ.get("PORT", "5000"))
DEBUG = os.environ.get("FLASK_DEBUG", "0") == "1"

# -----------------------------------------------------------
# FLASK APP SETUP
# -----------------------------------------------------------
app = Flask(__name__)
app.config["UPLOAD_FOLDER"] = UPLOAD_DIR
app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_MB * 1024 * 1024
CORS(app)

# -----------------------------------------------------------
# HELPER FUNCTIONS
# -----------------------------------------------------------
def base_name(original_name, fallback):
    """Strips directories and the last extension from an uploaded name."""
    filename = secure_filename(original_name or "")
    if not filename:
        return fallback
    stem = filename.rsplit(".", 1)[0] if "." in filename else filename
    return stem or fallback


def remove_quietly(*paths):
    for path in paths:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            app.logger.warning("Could not remove temporary file %s: %s", path, e)


def run_transform(transform, fallback_name, extension):
    """
    Saves the upload to a temporary file, runs transform(input, output) and
    returns the output as an attachment. Both files are removed afterwards.
    """
    file = request.files.get("file")
    if not file:
        return jsonify({"message": "No file uploaded"}), 400

    original_name = request.form.get("originalName") or file.filename
    name = base_name(original_name, fallback_name)
    download_name = f"{name}.{extension}"

    upload_dir = app.config["UPLOAD_FOLDER"]
    os.makedirs(upload_dir, exist_ok=True)
    token = uuid.uuid4().hex
    input_path = os.path.join(upload_dir, f"{token}.upload")
    output_path = os.path.join(upload_dir, f"{token}.{extension}")

    try:
        file.save(input_path)
        transform(input_path, output_path)

        with open(output_path, "rb") as f:
            result = f.read()
        original_size = os.path.getsize(input_path)
    except HuffmanError as e:
        app.logger.info("Rejected %s: %s", original_name, e)
        return jsonify({
            "message": "Invalid compressed file",
            "error": f"{type(e).__name__}: {e}",
        }), 400
    except Exception as e:
        app.logger.exception("Error processing %s", original_name)
        return jsonify({"message": "Error processing file", "error": str(e)}), 500
    finally:
        remove_quietly(input_path, output_path)

    app.logger.info("%s: %d -> %d bytes", download_name, original_size, len(result))
    response = send_file(
        io.BytesIO(result),
        mimetype="application/octet-stream",
        as_attachment=True,
        download_name=download_name,
    )
    response.headers["X-Original-Size"] = str(original_size)
    response.headers["X-Result-Size"] = str(len(result))
    return response

# -----------------------------------------------------------
# ROUTES
# -----------------------------------------------------------
@app.route("/health")
def health():
    return jsonify({"status": "ok"})


@app.route("/compress", methods=["POST"])
def compress_route():
    return run_transform(compress_file, "compressed", "bin")


@app.route("/decompress", methods=["POST"])
def decompress_route():
    return run_transform(decompress_file, "decompressed", "txt")


@app.errorhandler(RequestEntityTooLarge)
def upload_too_large(e):
    limit = app.config["MAX_CONTENT_LENGTH"]
    return jsonify({"message": "File too large", "error": f"limit is {limit} bytes"}), 413

# -----------------------------------------------------------
if __name__ == "__main__":
    app.run(host="0.0.0.0", port=PORT, debug=DEBUG)
