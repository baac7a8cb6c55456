from flask import Blueprint, current_app, request, jsonify
from flask_socketio import emit
from algorithms.registry import describe_algorithms
from dataset_loader import PATTERNS, list_datasets
from services.simulator import Simulator, SimulatorStore
import logging
import time

logger = logging.getLogger(__name__)

DEFAULT_SESSION = "http-default"

# 创建蓝图
simulator_bp = Blueprint('simulator', __name__, url_prefix='/api/simulator')

# 会话存储：HTTP 以 session_id 区分，WebSocket 以 request.sid 区分
store = SimulatorStore(lambda: Simulator.from_config(current_app.config))


@simulator_bp.record_once
def configure_store(state):
    store.max_sessions = state.app.config.get("MAX_SESSIONS", store.max_sessions)


@simulator_bp.route('/algorithms', methods=['GET'])
def get_algorithms():
    return jsonify({"code": 200, "message": "success", "data": describe_algorithms()})


@simulator_bp.route('/datasets', methods=['GET'])
def get_datasets():
    return jsonify({"code": 200, "message": "success",
                    "data": {"presets": list_datasets(), "patterns": list(PATTERNS)}})


# HTTP接口（用于同步事件请求）
@simulator_bp.route('/event', methods=['POST'])
def post_event():
    try:
        return _dispatch(request.get_json(silent=True) or {})

    except Exception as e:
        logger.error(f"HTTP接口错误: {str(e)}")
        return jsonify({"code": 500, "message": f"接口错误：{str(e)}", "data": {}}), 500


@simulator_bp.route('/snapshot', methods=['POST'])
def post_snapshot():
    event = request.get_json(silent=True) or {}
    if isinstance(event, dict):
        event["action"] = "snapshot"
    return _dispatch(event)


def _dispatch(event):
    if not isinstance(event, dict):
        return jsonify({"code": 400, "message": "请求无效：请求体必须是 JSON 对象", "data": {}}), 400
    session_id = str(event.get('session_id') or DEFAULT_SESSION)
    logger.info(f"收到HTTP事件: {event.get('action')} - 会话: {session_id}")
    response = store.get(session_id).handle(event)
    return jsonify(response), response["code"]


# WebSocket事件处理
def register_socket_events(socketio):
    @socketio.on('connect')
    def handle_connect():
        logger.info(f'客户端已连接: {request.sid}')
        emit('connection_response', {'message': '连接成功', 'status': 'connected'})
        emit('simulator_state', store.get(request.sid).handle({'action': 'state'})["data"])

    @socketio.on('disconnect')
    def handle_disconnect(*args):
        logger.info(f'客户端已断开连接: {request.sid}')
        store.discard(request.sid)

    @socketio.on('simulator_event')
    def handle_simulator_event(data):
        """WebSocket实时处理界面事件"""
        try:
            data = data or {}
            logger.info(f"收到WebSocket事件 - 动作: {data.get('action') if isinstance(data, dict) else data!r}")

            response = store.get(request.sid).handle(data)

            if response["code"] == 200:
                emit('simulator_state', response["data"])
            else:
                emit('simulator_error', {'code': response["code"], 'error': response["message"],
                                         'data': response["data"]})

        except Exception as e:
            error_msg = f"事件处理错误: {str(e)}"
            logger.error(error_msg)
            emit('simulator_error', {'code': 500, 'error': error_msg, 'data': {}})

    @socketio.on('ping')
    def handle_ping():
        emit('pong', {'message': 'pong', 'timestamp': time.time()})
