import os
import logging
import threading

import numpy as np

from flask import Flask, request, jsonify, send_from_directory
from flask_cors import CORS
from sqlalchemy import create_engine, Column, Integer, String, Float, ForeignKey
from sqlalchemy.orm import declarative_base, sessionmaker, scoped_session

# Custom imports
from estimation.config import SimulationConfig
from estimation.encoder import encode_animation
from estimation.noise import UniformNoise
from estimation.renderer import FrameSequence
from estimation.simulator import simulate_config

logging.basicConfig(level=logging.INFO)

app = Flask(__name__)
CORS(app)

DATABASE_URL = os.environ.get("KALMAN_DATABASE_URL", "sqlite:///database.db")
engine = create_engine(DATABASE_URL, echo=False)
Base = declarative_base()


class Simulation(Base):
    __tablename__ = "simulations"
    id = Column(Integer, primary_key=True)
    name = Column(String)
    total_time = Column(Float)
    dt = Column(Float)
    velocity = Column(Float)
    sensor_noise_stddev = Column(Float)
    measurement_variance = Column(Float)
    process_variance = Column(Float)
    size = Column(Integer)
    scale = Column(Float)
    fps = Column(Float)
    seed = Column(Integer)
    output_path = Column(String)  # set once an animation has been encoded

    def to_config(self):
        return SimulationConfig(
            total_time=self.total_time,
            dt=self.dt,
            velocity=self.velocity,
            sensor_noise_stddev=self.sensor_noise_stddev,
            measurement_variance=self.measurement_variance,
            process_variance=self.process_variance,
            size=self.size,
            scale=self.scale,
            fps=self.fps,
            seed=self.seed,
        )


class Stats(Base):
    __tablename__ = "stats"
    id = Column(Integer, primary_key=True)
    simulation_id = Column(Integer, ForeignKey("simulations.id"))
    tick_count = Column(Integer, default=0)
    rmse_measured = Column(Float, default=0.0)
    rmse_estimated = Column(Float, default=0.0)
    max_error = Column(Float, default=0.0)
    final_estimate = Column(Float, default=0.0)


Base.metadata.create_all(engine)
Session = scoped_session(sessionmaker(bind=engine))

ANIMATION_DIR = os.path.abspath(os.environ.get("KALMAN_ANIMATION_DIR", "animations"))
os.makedirs(ANIMATION_DIR, exist_ok=True)


@app.teardown_appcontext
def remove_session(exception=None):
    Session.remove()


def simulation_to_dict(sim):
    return {
        "id": sim.id,
        "name": sim.name,
        "total_time": sim.total_time,
        "dt": sim.dt,
        "velocity": sim.velocity,
        "sensor_noise_stddev": sim.sensor_noise_stddev,
        "measurement_variance": sim.measurement_variance,
        "process_variance": sim.process_variance,
        "size": sim.size,
        "scale": sim.scale,
        "fps": sim.fps,
        "seed": sim.seed,
        "animation_url": f"/animations/{os.path.basename(sim.output_path)}" if sim.output_path else None,
    }


@app.route("/api/simulations", methods=["GET"])
def get_simulations():
    """Return a list of all simulations."""
    simulations = Session.query(Simulation).all()
    return jsonify([simulation_to_dict(s) for s in simulations])


@app.route("/api/simulations", methods=["POST"])
def create_simulation():
    """Run a simulation from form or JSON parameters and store its summary."""
    params = request.get_json(silent=True)
    if params is None:
        params = request.form.to_dict()
    if not isinstance(params, dict):
        return jsonify({"error": "Parameters must be a JSON object or form fields"}), 400
    params = dict(params)
    name = params.pop("name", "")
    params.pop("output_path", None)

    try:
        config = SimulationConfig.from_mapping(params)
        if config.seed is None:
            config.seed = int(np.random.default_rng().integers(0, 2**31 - 1))
        result = simulate_config(config)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    new_sim = Simulation(
        name=name,
        total_time=config.total_time,
        dt=config.dt,
        velocity=config.velocity,
        sensor_noise_stddev=config.sensor_noise_stddev,
        measurement_variance=config.R,
        process_variance=config.process_variance,
        size=config.size,
        scale=config.pixel_scale,
        fps=config.fps,
        seed=config.seed,
    )
    Session.add(new_sim)
    Session.commit()

    stats = Stats(
        simulation_id=new_sim.id,
        tick_count=len(result),
        rmse_measured=result.rmse_measured(),
        rmse_estimated=result.rmse_estimated(),
        max_error=result.max_estimation_error(),
        final_estimate=result[-1].estimated_position if len(result) else 0.0,
    )
    Session.add(stats)
    Session.commit()

    return jsonify({"message": "Simulation completed", "simulation_id": new_sim.id}), 201


@app.route("/api/simulations/<int:sim_id>/stats", methods=["GET"])
def get_simulation_stats(sim_id):
    """Return stats for a given simulation by ID."""
    stats = Session.query(Stats).filter_by(simulation_id=sim_id).first()
    if not stats:
        return jsonify({"error": "No stats found"}), 404

    data = {
        "tick_count": stats.tick_count,
        "rmse_measured": stats.rmse_measured,
        "rmse_estimated": stats.rmse_estimated,
        "max_error": stats.max_error,
        "final_estimate": stats.final_estimate,
    }
    return jsonify(data)


@app.route("/api/simulations/<int:sim_id>/ticks", methods=["GET"])
def get_simulation_ticks(sim_id):
    """Replay the simulation from its stored seed and return every tick."""
    sim = Session.query(Simulation).filter_by(id=sim_id).first()
    if not sim:
        return jsonify({"error": "Simulation not found"}), 404

    config = sim.to_config()
    result = simulate_config(config, noise=UniformNoise(config.seed))
    data = []
    for t in result:
        data.append({
            "time": t.time,
            "true_position": t.true_position,
            "measured_position": t.measured_position,
            "estimated_position": t.estimated_position,
        })
    return jsonify(data)


@app.route("/api/simulations/<int:sim_id>", methods=["DELETE"])
def delete_simulation(sim_id):
    """Delete a simulation from the database, including its Stats entry."""
    sim = Session.query(Simulation).filter_by(id=sim_id).first()
    if not sim:
        return jsonify({"error": "Simulation not found"}), 404

    stats = Session.query(Stats).filter_by(simulation_id=sim_id).first()
    if stats:
        Session.delete(stats)

    Session.delete(sim)
    Session.commit()
    return jsonify({"message": f"Simulation ID={sim_id} deleted"}), 200


def animation_path(sim_id):
    return os.path.join(ANIMATION_DIR, f"simulation_{sim_id}.gif")


def render_animation(sim_id):
    """Re-run the simulation, encode its GIF and record the output path."""
    session = Session()
    try:
        sim = session.query(Simulation).filter_by(id=sim_id).first()
        if not sim:
            raise ValueError(f"No simulation with id={sim_id}")
        config = sim.to_config()
        result = simulate_config(config, noise=UniformNoise(config.seed))
        output_path = animation_path(sim_id)
        frames = FrameSequence(result, config.size, config.pixel_scale)
        encode_animation(frames, output_path, fps=config.fps)
        sim.output_path = output_path
        session.commit()
    finally:
        Session.remove()


def render_animation_background(sim_id):
    try:
        render_animation(sim_id)
    except Exception as e:
        logging.exception(f"Background rendering error for simulation {sim_id}: {e}")


render_threads = {}


@app.route("/api/simulations/<int:sim_id>/render", methods=["GET"])
def start_render(sim_id):
    sim = Session.query(Simulation).filter_by(id=sim_id).first()
    if not sim:
        return jsonify({"error": "Simulation not found"}), 404

    gif_url = f"/animations/simulation_{sim_id}.gif"
    if sim_id in render_threads and render_threads[sim_id].is_alive():
        return jsonify({
            "message": f"Rendering already running for simulation {sim_id}",
            "gif_url": gif_url
        })

    t = threading.Thread(target=render_animation_background, args=(sim_id,))
    t.start()
    render_threads[sim_id] = t

    return jsonify({
        "message": f"Started rendering in background for simulation {sim_id}",
        "gif_url": gif_url
    })


@app.route("/animations/<path:filename>", methods=["GET"])
def serve_animation(filename):
    """Serve encoded GIFs from disk."""
    return send_from_directory(ANIMATION_DIR, filename)


if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=5000)
