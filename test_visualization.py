import matplotlib

matplotlib.use("Agg")

from packet_sim.paths import build_all_paths  # noqa: E402
from packet_sim.utils.visualization import plot_buffer_usage, save_path_visualization  # noqa: E402


def test_path_and_buffer_plots(tmp_path):
    for path in build_all_paths():
        steps = path.simulate(2048, 1000)
        graph_file = tmp_path / "plots" / f"{path.id}_graph.png"

        save_path_visualization(path, steps, filename=str(graph_file), show=False)
        plot_buffer_usage(steps, output_dir=str(tmp_path), filename=f"{path.id}_buffer", show=False)

        assert graph_file.exists()
        assert (tmp_path / f"{path.id}_buffer.png").exists()


def test_path_plot_without_trace(tmp_path):
    path = build_all_paths()[0]
    filename = tmp_path / "untraced.png"
    save_path_visualization(path, filename=str(filename), show=False)
    assert filename.exists()
