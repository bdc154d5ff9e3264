"""
➡️ But : Personnaliser la documentation Swagger/OpenAPI.

custom_openapi(app) modifie le schéma généré par FastAPI pour :

ajouter une description détaillée du pipeline d'upload,

documenter les conventions d'erreur.
"""

from fastapi.openapi.utils import get_openapi

def custom_openapi(app):
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=(
            "API Tubely : ingestion et diffusion de vidéos.\n\n"
            "### Conventions\n"
            "- Authentification : header `Authorization: Bearer <JWT>`.\n"
            "- Upload vidéo : champ multipart `video` (video/mp4, 10 GiB max).\n"
            "- Upload miniature : champ multipart `thumbnail` (image/jpeg, image/png, image/webp, 10 MiB max).\n"
            "- Erreurs : `{\"detail\": ...}` ; 400 entrée invalide, 401 non autorisé, "
            "404 inconnue, 500 échec interne, 502 échec du stockage objet.\n"
            "- `video_url` est une URL signée (10 min) ou publique selon la configuration.\n"
        ),
        routes=app.routes,
    )
    app.openapi_schema = openapi_schema
    return app.openapi_schema
