from flask import Flask, render_template
from flask_socketio import SocketIO
import logging
import socket

from config import Config, log_level

app = Flask(__name__)
app.config.from_object(Config)

# 配置日志
logging.basicConfig(level=log_level(app.config),
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# 使用 threading 模式替代 eventlet
socketio = SocketIO(
    app,
    cors_allowed_origins="*",
    logger=app.config["DEBUG"],
    engineio_logger=app.config["DEBUG"],
    async_mode='threading'
)

# 注册蓝图
from routes.algorithm_route import simulator_bp

app.register_blueprint(simulator_bp)

# 注册 SocketIO 事件
from routes.algorithm_route import register_socket_events

register_socket_events(socketio)


# 获取本机IP地址
def get_local_ip():
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("8.8.8.8", 80))
            return s.getsockname()[0]
    except OSError:
        return "127.0.0.1"


@app.route('/')
def index():
    return render_template('index.html',
                           width=app.config["CANVAS_WIDTH"],
                           height=app.config["CANVAS_HEIGHT"])


def main():
    host = app.config["HOST"]
    port = app.config["PORT"]
    local_ip = get_local_ip()
    logger.info("=" * 50)
    logger.info("机器学习算法模拟器启动成功!")
    logger.info(f"本地访问: http://localhost:{port}")
    logger.info(f"网络访问: http://{local_ip}:{port}")
    logger.info("=" * 50)

    # 添加 allow_unsafe_werkzeug=True 参数
    socketio.run(
        app,
        debug=app.config["DEBUG"],
        host=host,
        port=port,
        allow_unsafe_werkzeug=True
    )


if __name__ == '__main__':
    main()
