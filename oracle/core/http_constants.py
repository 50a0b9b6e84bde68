"""Constantes HTTP pour éviter les valeurs magiques dans le code.

Ce module définit les codes de statut HTTP et les délais réseau utilisés par les routes et les
passerelles externes (LLM, TTS).
"""

# Codes de statut HTTP courants
HTTP_OK = 200
HTTP_CREATED = 201
HTTP_NO_CONTENT = 204
HTTP_BAD_REQUEST = 400
HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409
HTTP_UNPROCESSABLE_ENTITY = 422
HTTP_INTERNAL_SERVER_ERROR = 500

# Seuil à partir duquel une réponse amont est considérée en échec
HTTP_STATUS_CLIENT_ERROR_MIN = 400

# Appels sortants
DEFAULT_TIMEOUT_S = 8.0
GENERIC_FETCH_MAX_RETRIES = 1
RETRY_BASE_DELAY_S = 1.0
