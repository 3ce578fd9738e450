from flask import Blueprint, Response, current_app, request

from ..image_proxy import CACHE_CONTROL, fetch_image

bp = Blueprint('media', __name__, url_prefix='/api/v1')


@bp.route('/image-proxy', methods=['GET'])
def image_proxy():
    """Re-serve a remote image (Google Drive share links included) from our origin."""
    content, content_type = fetch_image(
        request.args.get('url', ''),
        timeout=current_app.config.get('IMAGE_PROXY_TIMEOUT', 10)
    )
    return Response(content, mimetype=content_type, headers={
        'Cache-Control': CACHE_CONTROL,
        'Access-Control-Allow-Origin': '*',
    })
